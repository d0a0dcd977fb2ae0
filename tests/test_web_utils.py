import pytest

from answer_engine.tools import web_utils


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://example.com/a?b=1", True),
        ("http://localhost:8000", True),
        ("ftp://example.com", False),
        ("example.com/path", False),
        ("", False),
        (None, False),
        (42, False),
    ],
)
def test_is_valid_url(url, expected):
    assert web_utils.is_valid_url(url) is expected


def test_extract_urls_keeps_order():
    text = "Compare https://a.example/x and http://b.example/y please"

    assert web_utils.extract_urls(text) == ["https://a.example/x", "http://b.example/y"]
    assert web_utils.extract_urls("no links here") == []


def test_extract_domain_returns_hostname():
    assert web_utils.extract_domain("https://Docs.Python.org:443/3/") == "docs.python.org"
