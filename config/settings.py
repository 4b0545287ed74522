from __future__ import annotations
import logging
import os
from pathlib import Path

__all__ = [
    "get_openai_api_key",
    "get_openai_model",
    "get_dp_step_size",
    "get_dp_max_states",
    "get_log_level",
]

logger = logging.getLogger(__name__)

DEFAULT_DP_STEP       = 100
DEFAULT_DP_MAX_STATES = 10_000


def _load_dotenv(dotenv_path: Path | str = ".env") -> None:
    path = Path(dotenv_path)
    if not path.is_file():
        return
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and value and key not in os.environ:
            os.environ[key] = value


def _get(key: str, default: str = "") -> str:
    _load_dotenv()
    return os.environ.get(key, default).strip()


def _get_positive_int(key: str, default: int) -> int:
    """
    Read a positive integer setting.
    Malformed or non-positive values fall back to the default.
    """
    raw = _get(key)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {key}={raw!r}: not an integer, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring {key}={value}: must be positive, using {default}")
        return default
    return value


def get_openai_api_key() -> str:
    """
    Return the OpenAI API key.
    Priority: environment variable → .env file
    """
    return _get("OPENAI_API_KEY")


def get_openai_model() -> str:
    """Chat model used for the analyst brief."""
    return _get("OPENAI_MODEL", "gpt-4o") or "gpt-4o"


def get_dp_step_size() -> int:
    """Minimum rupee granularity for the budget optimizer (ADVISOR_DP_STEP)."""
    return _get_positive_int("ADVISOR_DP_STEP", DEFAULT_DP_STEP)


def get_dp_max_states() -> int:
    """Upper bound on optimizer table size (ADVISOR_DP_MAX_STATES)."""
    return _get_positive_int("ADVISOR_DP_MAX_STATES", DEFAULT_DP_MAX_STATES)


def get_log_level() -> str:
    return _get("LOG_LEVEL", "WARNING").upper() or "WARNING"
