"""Logger configuration for Lifting Buddy.

Query logs are bound with `user_id` and the pipeline `stage`; both are
rendered in the line prefix so one request can be followed through
CLASSIFY → RETRIEVE → GENERATE. Any other bound fields go at the end.
"""

import sys
from pathlib import Path

from loguru import logger

from app.config.settings import Settings

_PREFIX_FIELDS = ("stage", "user_id")


def _format_context(extra: dict) -> str:
    context = ""
    if "stage" in extra:
        context += " [{extra[stage]}]"
    if "user_id" in extra:
        context += " user={extra[user_id]}"
    rest = [key for key in extra if key not in _PREFIX_FIELDS]
    if rest:
        context += " |" + "".join(f" {key}={{extra[{key}]}}" for key in rest)
    return context


def _console_format(record) -> str:
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        + _format_context(record["extra"])
        + "\n{exception}"
    )


def _file_format(record) -> str:
    return (
        "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        + _format_context(record["extra"])
        + "\n{exception}"
    )


def setup_logger(config: Settings) -> None:
    """Configure loguru from settings: stderr always, a rotating file if LOG_FILE is set."""
    logger.remove()

    logger.add(sys.stderr, format=_console_format, level=config.log_level, colorize=True)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Exception values can contain prompts and user questions
        logger.add(
            log_path,
            format=_file_format,
            level=config.log_level,
            rotation=config.log_rotation,
            retention=config.log_retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.info(f"Logger initialized with level={config.log_level}, file={config.log_file or 'none'}")
