"""Optional ``.env`` loading for the CLI and host applications.

Purpose
-------
Let operators keep ``LOG_*`` settings in a ``.env`` file next to the project.
Loading is opt-in (``--use-dotenv`` or ``LOG_USE_DOTENV=1``) and never
overrides variables already present in the environment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

LOGGER = logging.getLogger(__name__)

DOTENV_ENV_VAR = "LOG_USE_DOTENV"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

_loaded_path: Path | None = None


def should_use_dotenv(*, explicit: bool | None = None, env_value: str | None = None) -> bool:
    """Decide whether to load ``.env``; an explicit CLI flag beats the env toggle.

    Examples
    --------
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    >>> should_use_dotenv(env_value="yes")
    True
    >>> should_use_dotenv()
    False
    """

    if explicit is not None:
        return explicit
    if env_value is None:
        return False
    normalized = env_value.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized not in _FALSY and normalized:
        LOGGER.warning("Ignoring unrecognised %s value %r", DOTENV_ENV_VAR, env_value)
    return False


def enable_dotenv(*, search_from: str | os.PathLike[str] | None = None) -> Path | None:
    """Load the nearest ``.env`` walking upwards from ``search_from`` (default: cwd).

    Returns the resolved path of the loaded file, or ``None`` when no file was
    found. Repeated calls reuse the first result.
    """

    global _loaded_path
    if _loaded_path is not None:
        return _loaded_path
    if search_from is not None:
        candidate = _find_upwards(Path(search_from))
    else:
        found = find_dotenv(usecwd=True)
        candidate = Path(found) if found else None
    if candidate is None:
        return None
    load_dotenv(candidate, override=False)
    _loaded_path = candidate.resolve()
    LOGGER.debug("Loaded environment from %s", _loaded_path)
    return _loaded_path


def _find_upwards(start: Path) -> Path | None:
    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


def _reset_dotenv_state_for_testing() -> None:
    global _loaded_path
    _loaded_path = None


__all__ = ["DOTENV_ENV_VAR", "enable_dotenv", "should_use_dotenv"]
