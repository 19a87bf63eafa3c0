"""Package logging.

Compilers log fragment-level decisions (dropped sort entries, registered
geo filters, ignored connectives) at debug or warning. Builders trace each
compiled request through `Logger.message`, whose level follows `LOG_LEVEL`.
"""

import logging
from typing import Optional

from elasticwhere.settings import settings as api_settings

ROOT_LOGGER = "elasticwhere"

_configured = False


def resolve_level(name: Optional[str]) -> int:
    """Map a level name to its numeric value; unknown or empty names give INFO."""
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else logging.INFO


def setup_global_logging(level: str = "INFO") -> None:
    """Install the `asctime level [name] message` format on the root logger.

    Only the first call has any effect.
    """
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=resolve_level(level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> "Logger":
    """Logger under the `elasticwhere` namespace, e.g. `elasticwhere.WhereCompiler`."""
    return Logger(name)


class Logger:
    """Namespaced logger for compilers and request builders."""

    def __init__(self, name: Optional[str] = None) -> None:
        if not _configured:
            setup_global_logging(api_settings.LOG_LEVEL)
        self._logger = logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def message(self, msg: str, *args, **kwargs) -> None:
        """Log a request trace at the configured `LOG_LEVEL` (INFO when unset)."""
        self._logger.log(resolve_level(api_settings.LOG_LEVEL), msg, *args, **kwargs)
