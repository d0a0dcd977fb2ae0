"""Redis-backed cache for scrape results and chat history.

Caching is best-effort: read failures are misses, write failures are logged,
and nothing here raises into the request path except caller errors.
"""
from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from answer_engine.models.schemas import ChatEntry
from answer_engine.services.logger import log_cache_error, logger

CACHE_DURATION = 3600  # seconds
CACHE_PREFIX = "cache:"
SCRAPE_CACHE_PREFIX = f"{CACHE_PREFIX}scrape:"
AI_CACHE_PREFIX = f"{CACHE_PREFIX}ai:"
CHAT_HISTORY_PREFIX = f"{CACHE_PREFIX}chat:"
CHAT_HISTORY_LIMIT = 50


def create_cache_key(content: str, prefix: str, conversation_id: str | None = None) -> str:
    """Content-addressed key: ``prefix[conversation_id:]sha256(content)``."""
    if not content or not prefix:
        raise ValueError("Content and prefix must be provided to create a cache key.")
    digest = hashlib.sha256(content.encode("utf-8")).hexdigest()
    if conversation_id is None:
        return f"{prefix}{digest}"
    if not conversation_id:
        raise ValueError("conversation_id must not be empty.")
    return f"{prefix}{conversation_id}:{digest}"


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, BaseException):
        return str(value)
    if isinstance(value, re.Pattern):
        return value.pattern
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize(value: Any) -> str:
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    return json.dumps(value, default=_json_default)


def chat_history_key(conversation_id: str) -> str:
    return f"{CHAT_HISTORY_PREFIX}{conversation_id}"


class CacheService:
    """Thin layer over an async Redis client (``redis.asyncio.Redis`` or compatible)."""

    def __init__(self, client: Any):
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "CacheService":
        import redis.asyncio as aioredis

        return cls(aioredis.from_url(redis_url, decode_responses=True))

    async def aclose(self) -> None:
        """Release the client's connection pool."""
        try:
            await self._client.aclose()
        except Exception as exc:
            log_cache_error("close", exc)

    async def get(self, key: str) -> Any | None:
        try:
            cached = await self._client.get(key)
        except Exception as exc:
            log_cache_error("get", exc)
            return None

        if cached is None or cached == "" or cached == b"":
            return None

        # Some clients hand back already-decoded values.
        if isinstance(cached, (dict, list)):
            return cached

        if isinstance(cached, bytes):
            cached = cached.decode("utf-8", errors="replace")

        try:
            return json.loads(cached)
        except (TypeError, ValueError) as exc:
            log_cache_error("JSON Parse", exc)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int = CACHE_DURATION) -> None:
        if value is None:
            raise ValueError("Cannot cache null content")

        try:
            payload = serialize(value)
        except (TypeError, ValueError) as exc:
            log_cache_error("serialize", exc)
            return

        try:
            await self._client.set(key, payload, ex=ttl_seconds)
        except Exception as exc:
            log_cache_error("set", exc)

    async def store_chat(self, conversation_id: str, user_message: str, ai_response: str) -> None:
        entry = ChatEntry(user_message=user_message, ai_response=ai_response)
        key = chat_history_key(conversation_id)
        try:
            await self._client.lpush(key, entry.model_dump_json())
            await self._client.ltrim(key, 0, CHAT_HISTORY_LIMIT - 1)
        except Exception as exc:
            log_cache_error("store_chat", exc)

    async def get_chat_history(self, conversation_id: str, limit: int = 5) -> list[ChatEntry]:
        if limit <= 0:
            return []
        try:
            raw_history = await self._client.lrange(chat_history_key(conversation_id), 0, limit - 1)
        except Exception as exc:
            log_cache_error("get_chat_history", exc)
            return []

        history: list[ChatEntry] = []
        for raw in raw_history or []:
            try:
                if isinstance(raw, dict):
                    history.append(ChatEntry.model_validate(raw))
                else:
                    history.append(ChatEntry.model_validate_json(raw))
            except ValidationError as exc:
                logger.warning(f"Skipping malformed chat entry for {conversation_id}: {exc}")
        return history
