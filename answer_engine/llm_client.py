"""Answer generator backed by an OpenAI-compatible gateway (OpenRouter)."""
from __future__ import annotations

import re
from typing import Any

from loguru import logger

from answer_engine.config import settings
from answer_engine.errors import AnswerGenerationError
from answer_engine.models.schemas import ChatEntry, QueryAnalysis
from answer_engine.services.retry import with_retry
from answer_engine.tools import web_utils

MIN_CONFIDENCE_SCORE = 0.5
MAX_SUMMARY_LENGTH = 15000

_LIST_RESPONSE = re.compile(
    r"^\s*1\.\s*(.+?)\n\s*2\.\s*(.+?)\n\s*3\.\s*(.+?)\n\s*4\.\s*(.+?)\n"
    r"\s*5\.\s*(.+?)\n\s*6\.\s*(.+?)\n\s*7\.\s*(.+?)\s*$",
    re.DOTALL,
)

ANALYZER_PROMPT = """Analyze the intent of the following user query in the context of the conversation:

Query: "{query}"

Conversation history:
{history}

Provide the following details in a numbered list format. Respond strictly in this format:
1. Is the query casual? (true/false)
2. Does the query require additional information from external sources? (true/false)
3. Reasoning behind your analysis.
4. Suggested approach for answering the query.
5. Suggested search query (if applicable, otherwise "null").
6. Specific content requirements (if applicable, otherwise "none").
7. Is this query a follow-up to the previous messages? (true/false)
"""


def parse_list_response(response: str) -> list[str] | None:
    match = _LIST_RESPONSE.match(response or "")
    if not match:
        return None
    return [item.strip() for item in match.groups()]


def _as_bool(value: str) -> bool:
    return value.strip().strip(".").lower() == "true"


def fallback_analysis(extracted_urls: list[str] | None = None) -> QueryAnalysis:
    return QueryAnalysis(
        is_casual=True,
        needs_search=False,
        reasoning="Fallback due to analysis failure.",
        suggested_approach="Respond conversationally.",
        search_query=None,
        confidence_score=MIN_CONFIDENCE_SCORE,
        extracted_urls=list(extracted_urls or []),
        is_follow_up=False,
    )


def create_enhanced_prompt(
    *,
    query: str,
    context: str,
    reasoning: str,
    is_casual: bool,
) -> str:
    context_block = f"Context:\n{context}\n" if context else ""
    tone = "Keep the reply short and conversational.\n" if is_casual else ""
    return (
        "You are a knowledgeable assistant. Always provide a direct and complete response "
        "to the user's query. Avoid asking follow-up questions or requesting additional "
        "information. Respond concisely, accurately, and in a helpful tone.\n"
        "If the context lists sources or links, cite them in your response. Do not refer to "
        "the context as 'the provided text'; answer as if you collected it yourself.\n"
        f"{tone}"
        f"Analysis: {reasoning}\n"
        f"{context_block}\n"
        f'Query: "{query}"\n\n'
        "Response:"
    )


class AnswerGenerator:
    def __init__(self, client: Any | None = None, *, model: str | None = None):
        self._client = client
        self.model = model or settings.answer_model

    @property
    def client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1",
            )
        return self._client

    async def _complete(self, prompt: str) -> str:
        async def _call() -> Any:
            return await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )

        response = await with_retry(_call)
        text = response.choices[0].message.content
        if not isinstance(text, str):
            raise ValueError("Model returned no text content")
        return text.strip()

    async def analyze_intent(self, message: str, history: list[ChatEntry]) -> QueryAnalysis:
        extracted_urls = web_utils.extract_urls(message)
        if extracted_urls:
            return QueryAnalysis(
                is_casual=False,
                needs_search=False,
                reasoning="User provided URLs directly in the query. Prioritize scraping these URLs for context.",
                suggested_approach="Scrape provided URLs to gather relevant information.",
                search_query=None,
                confidence_score=1.0,
                extracted_urls=extracted_urls,
                is_follow_up=False,
            )

        history_context = "\n".join(
            f"Message {index}: User: {entry.user_message} | Assistant: {entry.ai_response}"
            for index, entry in enumerate(history, start=1)
        )
        prompt = ANALYZER_PROMPT.format(query=message, history=history_context)

        try:
            raw = await self._complete(prompt)
            parsed = parse_list_response(raw)
            if parsed is None:
                raise ValueError("Invalid LLM response format")
            is_casual, needs_search, reasoning, approach, search_query, _focus, is_follow_up = parsed
            cleaned_query = search_query.strip().strip("\"'")
            return QueryAnalysis(
                is_casual=_as_bool(is_casual),
                needs_search=_as_bool(needs_search),
                reasoning=reasoning,
                suggested_approach=approach,
                search_query=None if cleaned_query.lower() in {"", "null"} else cleaned_query,
                confidence_score=1.0,
                extracted_urls=[],
                is_follow_up=_as_bool(is_follow_up),
            )
        except Exception as exc:
            logger.error(f"Query analysis failed: {exc}")
            return fallback_analysis(extracted_urls)

    async def generate_answer(self, prompt: str) -> str:
        try:
            return await self._complete(prompt)
        except Exception as exc:
            logger.error(f"Error generating response: {exc}")
            raise AnswerGenerationError("Failed to generate AI response") from exc

    async def summarize(self, content: str) -> str:
        prompt = (
            "Summarize the following content. Avoid omitting important information:\n\n"
            f"{content}\n\nProvide a concise and structured summary."
        )
        try:
            summary = await self._complete(prompt)
        except Exception as exc:
            logger.error(f"Content summarization failed: {exc}")
            raise AnswerGenerationError("Summarization failed") from exc
        if len(summary) > MAX_SUMMARY_LENGTH:
            return summary[:MAX_SUMMARY_LENGTH] + "..."
        return summary
