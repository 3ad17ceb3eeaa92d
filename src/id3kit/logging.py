"""Opt-in loguru output for id3kit training runs.

id3kit never prints on its own. ``id3kit/__init__.py`` disables the package
logger and this module drops loguru's default handler 0, so records appear
only while a handle returned by ``enable_logging()`` is alive.

Every record carries its context (rows, attribute, purity, split point, ...)
as loguru ``extra`` fields rather than in the message text; both log formats
print those fields after the message.

Note:
    If your application replaced handler 0 before importing id3kit, the
    removal is a no-op. Add your own handlers after importing id3kit.
"""

from __future__ import annotations

import contextlib
import sys
import threading
import warnings
from typing import TYPE_CHECKING, ClassVar, Final, Literal, TextIO

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

# `train` and `Tree.accuracy` log here; split-level detail goes to DEBUG
TRAINING_LEVEL: Final[str] = "TRAINING"
TRAINING_LEVEL_NUMBER: Final[int] = 25

type LogLevel = Literal["TRACE", "DEBUG", "INFO", "TRAINING", "WARNING", "ERROR", "CRITICAL"]
type LogFormat = Literal["short", "full"]

_SOURCE_LOCATIONS: Final[dict[str, str]] = {
    "short": "<cyan>{function}</cyan>",
    "full": "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>",
}

with contextlib.suppress(ValueError):
    logger.remove(0)


def _register_training_level() -> None:
    """Add the TRAINING level unless loguru already knows it.

    loguru cannot renumber an existing level, so a registration with a
    different number only warns.
    """
    try:
        registered = logger.level(TRAINING_LEVEL)
    except ValueError:
        logger.level(TRAINING_LEVEL, no=TRAINING_LEVEL_NUMBER, icon="🌳")
        return
    if registered.no != TRAINING_LEVEL_NUMBER:
        warnings.warn(
            f"TRAINING level already registered with numeric value {registered.no}, expected {TRAINING_LEVEL_NUMBER}",
            stacklevel=2,
        )


_register_training_level()


class LoggingHandle:
    """One live id3kit handler, returned by `enable_logging`.

    Handles are independent: each owns one loguru handler. The package logger
    stays enabled while any handle is live and is disabled again when the last
    one is.

    Examples:
        >>> with enable_logging(level="DEBUG"):  # doctest: +SKIP
        ...     tree = train(dataset, "Play")
    """

    _active_ids: ClassVar[set[int]] = set()
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, handler_id: int) -> None:
        self.handler_id: int | None = handler_id
        with LoggingHandle._lock:
            LoggingHandle._active_ids.add(handler_id)

    def disable(self) -> None:
        """Remove this handle's handler. Calling it again does nothing."""
        with LoggingHandle._lock:
            if self.handler_id is None:
                return
            LoggingHandle._active_ids.discard(self.handler_id)
            with contextlib.suppress(ValueError):
                logger.remove(self.handler_id)
            self.handler_id = None
            if not LoggingHandle._active_ids:
                logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.disable()

    @classmethod
    def get_active_handle_count(cls) -> int:
        """Return how many handles have not been disabled yet."""
        with cls._lock:
            return len(cls._active_ids)


def enable_logging(
    *,
    level: LogLevel = TRAINING_LEVEL,
    log_format: LogFormat = "short",
    sink: TextIO | None = None,
) -> LoggingHandle:
    """Start writing id3kit records to `sink`.

    At the default level each `train` call logs its start (rows, outcome,
    builder, purity function) and its result (depth, leaves), and each
    `Tree.accuracy` call logs the score. "DEBUG" adds one record per
    discretized attribute, selected split, pre-pruned split and leaf.

    Args:
        level (LogLevel): Minimum level to write. Defaults to "TRAINING".
        log_format (LogFormat): "short" prefixes records with the function
            name; "full" uses `module:function:line`.
        sink (TextIO | None): Stream to write to. Defaults to the current
            `sys.stderr`.

    Returns:
        LoggingHandle: Disable it, or use it as a context manager, to stop.

    Note:
        Disabling the last live handle calls ``logger.disable("id3kit")``,
        which also silences handlers your application added for id3kit.
    """
    logger.enable(PACKAGE_NAME)
    handler_id = logger.add(
        sys.stderr if sink is None else sink,
        level=level,
        filter=_is_id3kit_record,
        format=_format_for(log_format),
    )
    return LoggingHandle(handler_id)


def _format_for(log_format: LogFormat) -> str:
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
        f"{_SOURCE_LOCATIONS[log_format]} - "
        "<level>{message}</level> {extra}"
    )


def _is_id3kit_record(record: Record) -> bool:
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
