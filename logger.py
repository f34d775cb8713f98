"""
Logging configuration for the Rotation Scheduler.

setup_logging() is called once by the Streamlit entry page (1_Setup.py).
Every module logs under the "app" namespace:
    import logging
    logger = logging.getLogger("app.module_name")

Third-party loggers stay at WARNING; the app's own level comes from the
LOG_LEVEL environment variable (default INFO).
"""

import logging
import os
import sys

from app_types import Game, Pair

# App namespace prefix - all app loggers should use this
APP_LOGGER_NAME = "app"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def level_from_env(default: int = logging.INFO) -> int:
    """Reads LOG_LEVEL (e.g. "DEBUG") from the environment."""
    name = os.environ.get("LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_logging(app_level: int | None = None) -> None:
    """
    Configure logging for the application.

    - Root logger is set to WARNING (keeps streamlit/supabase quiet)
    - App namespace logger ("app.*") is set to app_level, or LOG_LEVEL

    Args:
        app_level: The logging level for app modules (default: from env)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    # Streamlit reruns the entry script, so only attach the handler once
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)  # Handler accepts all; loggers filter
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        root_logger.addHandler(handler)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(app_level if app_level is not None else level_from_env())


def log_round_debug(
    logger: logging.Logger,
    round_number: int,
    pairs: list[Pair],
    games: list[Game],
) -> None:
    """
    Log the pairs and games of one generated round in a consistent format.

    Args:
        logger: Logger instance to use
        round_number: 1-based round number
        pairs: Pairs produced by the pairing step
        games: Games produced from those pairs
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return

    logger.debug(
        "Round %d pairs: %s",
        round_number,
        [(p.p1, p.p2, round(p.strength, 3)) for p in pairs],
    )
    for game in games:
        logger.debug(
            "Round %d %s game %s: %.3f vs %.3f",
            round_number,
            game.game_type.value,
            game.id,
            game.pair_a.strength,
            game.pair_b.strength,
        )
