"""Cyclic status message timer used while an exhibit is being generated."""

import asyncio
import logging
from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)


class StatusRotator:
    """Advances through a fixed sequence of status messages on a timer.

    The first message is shown on ``start()``. Each ``interval`` seconds the
    index advances and wraps after the last message. ``stop()`` cancels the
    pending tick, so no callback runs after it returns.
    """

    def __init__(
        self,
        messages: Sequence[str],
        interval: float = 2.5,
        on_tick: Callable[[int, str], None] | None = None,
    ):
        """Initialize the rotator.

        Args:
            messages: Ordered, non-empty status messages.
            interval: Seconds between advances.
            on_tick: Called with (index, message) after each advance.

        Raises:
            ValueError: If messages is empty or interval is not positive.
        """
        if not messages:
            raise ValueError("messages must not be empty")
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.messages = tuple(messages)
        self.interval = interval
        self.on_tick = on_tick
        self._index = 0
        self._handle: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def index(self) -> int:
        return self._index

    @property
    def message(self) -> str:
        return self.messages[self._index]

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Reset to the first message and begin ticking."""
        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        self._index = 0
        self._schedule()

    def stop(self) -> None:
        """Cancel the pending tick. Safe to call when not running."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._loop = None

    def _schedule(self) -> None:
        assert self._loop is not None
        self._handle = self._loop.call_later(self.interval, self._tick)

    def _tick(self) -> None:
        if self._handle is None:
            return
        self._index = (self._index + 1) % len(self.messages)
        self._schedule()
        logger.debug(f"Status message advanced to {self._index}")
        if self.on_tick is not None:
            self.on_tick(self._index, self.message)
