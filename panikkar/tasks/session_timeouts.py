"""
Resets conversations abandoned mid-flow.

Meant to run from an external scheduler, e.g. every five minutes from cron:

    */5 * * * * panikkar-expire-sessions
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from panikkar.services.conversation.conversation_manager import ConversationManager

logger = logging.getLogger(__name__)


async def expire_idle_sessions(manager: ConversationManager, now: Optional[datetime] = None) -> int:
    """
    Runs the timeout hook of every session idle past the timeout window.

    Returns:
        int: number of sessions reset
    """
    count = await manager.expire_idle_sessions(now)
    logger.info(f"[TIMEOUTS] {count} sessions expired")
    return count


async def _run() -> int:
    manager = ConversationManager()
    try:
        return await expire_idle_sessions(manager)
    finally:
        await manager.close()


def main():
    import panikkar.logging_config  # noqa: F401
    asyncio.run(_run())


if __name__ == "__main__":
    main()
