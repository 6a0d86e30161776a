"""Signboard view tree and animated stat indicators.

The view built here is what the page template renders and what the image
exporter rasterizes, so both always show the same content.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from src.chains.exhibit_generator import ExhibitData
from src.ui.utils import (
    STAT_LABELS,
    format_danger_level,
    split_description,
)


def ease_out(progress: float) -> float:
    """Cubic ease-out curve, monotonic on [0, 1] with ease_out(1) == 1."""
    return 1 - (1 - progress) ** 3


class StatIndicator:
    """Percentage bar that fills from 0 to its target after a short delay.

    The bar shows 0 until ``delay_ms`` after ``mount()``. It then fills
    toward ``target`` over ``duration_ms`` and stops exactly at the target.
    ``unmount()`` cancels a pending start and freezes the displayed value.
    """

    def __init__(
        self,
        key: str,
        label: str,
        target: int,
        delay_ms: int = 300,
        duration_ms: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.key = key
        self.label = label
        self.target = target
        self.delay_ms = delay_ms
        self.duration_ms = duration_ms
        self._clock = clock
        self._handle: asyncio.TimerHandle | None = None
        self._mounted = False
        self._started_at: float | None = None
        self._frozen_value: float | None = None

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def has_started(self) -> bool:
        return self._started_at is not None

    def mount(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Show the indicator at 0 and schedule the fill animation."""
        if self._mounted:
            return
        loop = loop or asyncio.get_running_loop()
        self._mounted = True
        self._started_at = None
        self._frozen_value = None
        self._handle = loop.call_later(self.delay_ms / 1000, self._begin)

    def unmount(self) -> None:
        """Tear the indicator down; a pending fill is cancelled."""
        if not self._mounted:
            return
        self._frozen_value = self.displayed_value()
        self._mounted = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _begin(self) -> None:
        self._handle = None
        if not self._mounted:
            return
        self._started_at = self._clock()

    def displayed_value(self, now: float | None = None) -> float:
        """Current fill width in percent."""
        if self._frozen_value is not None:
            return self._frozen_value
        if self._started_at is None:
            return 0.0
        if self.duration_ms <= 0:
            return float(self.target)
        now = self._clock() if now is None else now
        progress = (now - self._started_at) / (self.duration_ms / 1000)
        progress = min(1.0, max(0.0, progress))
        return self.target * ease_out(progress)


@dataclass
class SignboardView:
    """Everything shown on one rendered signboard."""

    data: ExhibitData
    user_name: str
    classification: str
    danger_caption: str
    scientific_name: str
    description_lines: list[str]
    stats: list[StatIndicator]
    fun_fact: str
    mounted: bool = field(default=False, init=False)

    @property
    def description(self) -> str:
        return "\n".join(self.description_lines)

    def mount(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        for indicator in self.stats:
            indicator.mount(loop)
        self.mounted = True

    def unmount(self) -> None:
        for indicator in self.stats:
            indicator.unmount()
        self.mounted = False


def build_signboard_view(
    data: ExhibitData,
    user_name: str,
    delay_ms: int = 300,
    duration_ms: int = 1000,
) -> SignboardView:
    """Compose the signboard view for the given exhibit data.

    Args:
        data: Generated exhibit content.
        user_name: Name shown as the exhibit title.
        delay_ms: Delay before stat bars start filling.
        duration_ms: Duration of the stat bar fill.

    Returns:
        An unmounted SignboardView.
    """
    stats = [
        StatIndicator(
            key=key,
            label=label,
            target=getattr(data.stats, key),
            delay_ms=delay_ms,
            duration_ms=duration_ms,
        )
        for key, label in STAT_LABELS.items()
    ]
    return SignboardView(
        data=data,
        user_name=user_name.strip(),
        classification=data.classification,
        danger_caption=format_danger_level(data.danger_level),
        scientific_name=data.scientific_name,
        description_lines=split_description(data.description),
        stats=stats,
        fun_fact=data.fun_fact,
    )
