"""
HomeLab Discord Bot - Application Entry Point
=============================================

Bootstrap
---------
- Load `.env` and build the configuration
- Configure logging
- Build the service container and the bot
- Run until SIGTERM / Ctrl+C, then shut down gracefully
"""

import asyncio
import signal
import sys
from typing import Optional

from src.bot.homelab_bot import HomelabBot
from src.core.config.config import BotConfig, Config
from src.core.exceptions import ConfigurationError
from src.core.logging.logger import get_logger, setup_logging, shutdown_logging
from src.core.services.container import ServiceContainer

logger = get_logger(__name__)


# ============================================================================
# Application Bootstrap
# ============================================================================

def _load_config() -> BotConfig:
    config = Config.from_env()
    Config.prepare_directories(config)
    setup_logging(config)

    if not config.discord_token:
        raise ConfigurationError("DISCORD_TOKEN", "DISCORD_TOKEN is required")
    return config


def _startup(config: BotConfig) -> HomelabBot:
    """Build the container and bot. Services are initialized in `setup_hook`."""
    logger.info("========== HOMELAB BOT INITIALIZATION START ==========")
    logger.info("✓ Configuration loaded", extra=config.summary())

    container = ServiceContainer(config)
    bot = HomelabBot(config, container)
    logger.info("✓ Bot initialized")
    return bot


# ============================================================================
# Application Shutdown
# ============================================================================

async def _shutdown(bot: Optional[HomelabBot]) -> None:
    logger.info("========== HOMELAB BOT SHUTDOWN START ==========")

    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
            logger.info("✓ Bot closed")
        except Exception as exc:
            logger.error(
                "Error while closing bot",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )

    logger.info("========== SHUTDOWN COMPLETE ==========")


# ============================================================================
# Application Entrypoint
# ============================================================================

async def main() -> None:
    """
    Lifecycle:
        1. Load configuration and logging
        2. Build services and bot
        3. Start bot (setup_hook initializes services)
        4. Shut down gracefully on SIGTERM or interrupt
    """
    bot: Optional[HomelabBot] = None
    try:
        config = _load_config()
        bot = _startup(config)

        stop_requested = asyncio.Event()
        _install_signal_handlers(asyncio.get_running_loop(), stop_requested)

        logger.info("Starting HomeLab Discord bot...")
        runner = asyncio.create_task(bot.start(config.discord_token), name="discord-client")
        waiter = asyncio.create_task(stop_requested.wait(), name="shutdown-signal")
        done, _ = await asyncio.wait({runner, waiter}, return_when=asyncio.FIRST_COMPLETED)

        if waiter in done:
            logger.info("SIGTERM received, shutting down")
        else:
            waiter.cancel()
            # Surface login/connection failures
            runner.result()

    except ConfigurationError as exc:
        logger.critical("Invalid configuration", extra={"error": exc.message, "error_type": type(exc).__name__})
        sys.exit(1)

    except asyncio.CancelledError:
        logger.warning("Asyncio task cancellation received; shutting down gracefully.")
        raise

    finally:
        await _shutdown(bot)


# ============================================================================
# Process Startup
# ============================================================================

def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop_requested: asyncio.Event) -> None:
    """Install signal handlers for graceful shutdown in production."""
    try:
        loop.add_signal_handler(signal.SIGTERM, stop_requested.set)
        logger.debug("SIGTERM handler installed")
    except NotImplementedError:
        logger.debug("SIGTERM not supported on this platform (likely Windows)")


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot manually stopped via keyboard interrupt.")
    except Exception as exc:
        logger.critical(
            "Startup failure",
            extra={"error": str(exc), "error_type": type(exc).__name__},
            exc_info=True,
        )
        sys.exit(1)
    finally:
        shutdown_logging()


if __name__ == "__main__":
    run()
