import sys
import logging
from typing import Any

from loguru import logger

from src.config.settings import settings


def sensitive_data_filter(record: dict[str, Any]) -> bool:
    """Filter function to mask the Apps Script deployment URL in log records."""
    web_app_url = str(settings.sheets_web_app_url) if settings.sheets_web_app_url else None

    if web_app_url and web_app_url in record["message"]:
        record["message"] = record["message"].replace(
            web_app_url, mask_url(web_app_url)
        )

    if record.get("extra"):
        for extra_key, extra_value in record["extra"].items():
            if isinstance(extra_value, str) and web_app_url and web_app_url in extra_value:
                record["extra"][extra_key] = extra_value.replace(
                    web_app_url, mask_url(web_app_url)
                )

    return True  # Keep the record after masking


def mask_url(url: str) -> str:
    """Keeps the scheme and host of a URL and hides the rest."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        return "********"
    host = rest.split("/", 1)[0]
    return f"{scheme}://{host}/****"


def setup_logging() -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=True,
        filter=sensitive_data_filter,
    )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    # Intercept standard logging messages (httpx, asyncio)
    class InterceptHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            # Get corresponding Loguru level if it exists
            try:
                level = logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

            # Find caller from where originated the logged message
            frame, depth = logging.currentframe(), 2
            while frame.f_code.co_filename == logging.__file__:
                frame = frame.f_back
                depth += 1

            logger.opt(depth=depth, exception=record.exc_info).log(
                level, record.getMessage()
            )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logger.debug("Standard logging intercepted.")
