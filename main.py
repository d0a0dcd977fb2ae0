"""Answer Engine - web-grounded question answering

Simple CLI for answering one message within a conversation.
"""

import argparse
import asyncio
import signal
import sys
import uuid

from answer_engine.config import settings
from answer_engine.engine import AnswerEngine
from answer_engine.errors import AnswerEngineError
from answer_engine.services.cache import CacheService
from answer_engine.services.logger import logger
from answer_engine.tools.browser_pool import BrowserPool


async def run_answer(message: str, conversation_id: str) -> int:
    """Answer ``message`` and print the reply with its sources."""
    print(f"Conversation: {conversation_id}")
    print(f"Message: {message}")
    print("-" * 50)

    async with BrowserPool() as pool:
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, task.cancel)
            except NotImplementedError:
                # Windows event loops do not support signal handlers.
                pass

        cache = CacheService.from_url(settings.redis_url)
        engine = AnswerEngine.create(pool, cache)
        try:
            result = await engine.answer(message, conversation_id)
        except asyncio.CancelledError:
            logger.warning("Interrupted, shutting down browser pool")
            return 130
        except AnswerEngineError as exc:
            print(f"\n[!] {exc}")
            return 1
        finally:
            await cache.aclose()

    print(result.ai_response)
    if result.context:
        print(f"\n{'=' * 50}")
        print("SOURCES:")
        for source in result.context.scraping_results:
            print(f"  - {source.url} ({source.scrape_method})")
    print(f"\n[*] Total time: {result.metrics.total_ms:.0f}ms")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Answer Engine CLI")
    parser.add_argument("message", help="Question or message to answer")
    parser.add_argument(
        "--conversation-id",
        "-c",
        default=None,
        help="Conversation id for chat history (a new one is generated if omitted)",
    )

    args = parser.parse_args()
    conversation_id = args.conversation_id or str(uuid.uuid4())

    try:
        sys.exit(asyncio.run(run_answer(args.message, conversation_id)))
    except KeyboardInterrupt:
        print("\n\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
