#!/usr/bin/env python3
"""
FunEdu Learning Telegram Bot
Main application entry point
"""

import asyncio
import logging

from funedu.bot_handler import BotHandler
from funedu.config import get_settings


async def main():
    """Main application entry point"""
    # Load configuration
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger = logging.getLogger(__name__)
    logger.info("Starting FunEdu Learning Bot...")

    bot_handler = BotHandler(settings)

    try:
        await bot_handler.start()
        logger.info("Bot stopped gracefully")
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Shutdown requested, stopping bot...")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
