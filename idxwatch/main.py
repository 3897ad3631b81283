"""Main entry point for the IDX watch service."""

import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone

from .app_state import WatchApp
from .config import Config
from .providers.symbols import COMPOSITE_ALIAS, display_symbol

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def report(app: WatchApp) -> None:
    """Log the composite index, the active watchlist rows and any fired alerts."""
    composite = app.composite_quote()
    if composite is not None:
        logger.info("%s %.2f (%+.2f%%)", COMPOSITE_ALIAS, composite.price, composite.change_percent)
    else:
        logger.info("%s unavailable", COMPOSITE_ALIAS)

    for symbol, quote in app.rows():
        if quote is None:
            logger.info("  %-6s --", display_symbol(symbol))
        else:
            logger.info("  %-6s %10.0f %+7.2f%%", display_symbol(symbol), quote.price, quote.change_percent)

    for event in app.alert_events:
        logger.warning("ALERT %s", event.message)


async def main() -> None:
    """Main application entry point."""
    config = Config.from_env()
    logging.getLogger().setLevel(config.log_level)

    app = WatchApp.create(config)
    app.listeners.append(report)

    logger.info("Starting at %s", datetime.now(timezone.utc).isoformat())
    logger.info(
        "Configuration: config_path=%s, refresh_interval=%ss, http_timeout=%d",
        config.config_path, app.quote_refresher.interval, config.http_timeout,
    )
    logger.info("Watchlist: %s", app.collection_indicator())

    stop_event = asyncio.Event()

    def async_signal_handler(signum):
        logger.info("Signal %d received, shutting down gracefully...", signum)
        stop_event.set()

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGTERM, lambda: async_signal_handler(signal.SIGTERM))
    loop.add_signal_handler(signal.SIGINT, lambda: async_signal_handler(signal.SIGINT))

    try:
        app.quote_refresher.start()
        await stop_event.wait()
    finally:
        logger.info("Stopping application...")
        await app.aclose()
        logger.info("Application stopped")


def run() -> None:
    """Synchronous entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
