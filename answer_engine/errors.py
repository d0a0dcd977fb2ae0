from __future__ import annotations


class AnswerEngineError(Exception):
    """Base class for errors raised by the answer engine."""


class InvalidInputError(AnswerEngineError, ValueError):
    """A required field is missing or malformed."""


class ScrapingError(AnswerEngineError):
    """A scraping resource could not be provided.

    ``url`` names the target (or the component, e.g. ``"browser-pool"``) and
    ``method`` the strategy that needed it.
    """

    def __init__(self, message: str, url: str, method: str):
        super().__init__(message)
        self.url = url
        self.method = method


class AnswerGenerationError(AnswerEngineError):
    """The language model failed to produce an answer."""
