"""Tests for the signboard view and stat indicators."""

import asyncio

import pytest

from src.ui.signboard import StatIndicator, build_signboard_view, ease_out
from src.ui.utils import STAT_LABELS


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def start_indicator(indicator: StatIndicator) -> None:
    """Mount the indicator and let its start delay elapse."""

    async def scenario():
        indicator.mount()
        await asyncio.sleep(indicator.delay_ms / 1000 + 0.05)

    asyncio.run(scenario())


class TestEaseOut:
    """Test the easing curve."""

    def test_endpoints(self):
        assert ease_out(0.0) == 0.0
        assert ease_out(1.0) == 1.0

    def test_monotonic(self):
        samples = [ease_out(step / 100) for step in range(101)]
        assert samples == sorted(samples)


class TestStatIndicator:
    """Test the animated percentage indicator."""

    def test_shows_zero_before_mount_and_during_delay(self):
        """The bar starts at 0 and stays there until the delay elapses."""
        indicator = StatIndicator("stamina", "体力", 80, delay_ms=200)

        async def scenario():
            before = indicator.displayed_value()
            indicator.mount()
            await asyncio.sleep(0.05)
            during = indicator.displayed_value()
            indicator.unmount()
            return before, during

        assert asyncio.run(scenario()) == (0.0, 0.0)

    @pytest.mark.parametrize("target", [0, 100, 42])
    def test_ends_exactly_at_target(self, target):
        """After the duration the bar shows the target exactly."""
        clock = FakeClock()
        indicator = StatIndicator("charm", "愛嬌", target, delay_ms=10, duration_ms=1000, clock=clock)

        start_indicator(indicator)

        assert indicator.has_started
        assert indicator.displayed_value(now=1.0) == pytest.approx(target)
        assert indicator.displayed_value(now=5.0) == pytest.approx(target)

    def test_fill_is_monotonic_without_overshoot(self):
        """Intermediate values rise steadily and never pass the target."""
        clock = FakeClock()
        indicator = StatIndicator("laziness", "怠惰さ", 73, delay_ms=10, duration_ms=1000, clock=clock)

        start_indicator(indicator)
        samples = [indicator.displayed_value(now=step / 20) for step in range(30)]

        assert samples[0] == 0.0
        assert samples == sorted(samples)
        assert max(samples) <= 73
        assert 0 < samples[5] < 73

    def test_unmount_before_delay_cancels_start(self):
        """No update applies after an early unmount."""
        indicator = StatIndicator("stamina", "体力", 90, delay_ms=50)

        async def scenario():
            indicator.mount()
            indicator.unmount()
            await asyncio.sleep(0.1)

        asyncio.run(scenario())

        assert indicator.has_started is False
        assert indicator.is_mounted is False
        assert indicator.displayed_value() == 0.0

    def test_unmount_freezes_value(self):
        """An unmounted indicator keeps its last displayed value."""
        clock = FakeClock()
        indicator = StatIndicator("stamina", "体力", 50, delay_ms=10, duration_ms=1000, clock=clock)
        start_indicator(indicator)

        clock.now = 2.0
        indicator.unmount()
        clock.now = 0.1

        assert indicator.displayed_value() == pytest.approx(50)


class TestBuildSignboardView:
    """Test view composition from exhibit data."""

    def test_view_fields(self, exhibit_data):
        """Header, title and footer text come from the data."""
        view = build_signboard_view(exhibit_data, "  山田太郎 ")

        assert view.user_name == "山田太郎"
        assert view.classification == exhibit_data.classification
        assert view.danger_caption == f"危険度：{exhibit_data.danger_level}"
        assert view.scientific_name == "Homo procrastinatus"
        assert view.fun_fact == exhibit_data.fun_fact
        assert view.data is exhibit_data

    def test_description_line_breaks_preserved(self, exhibit_data):
        """Blank lines between paragraphs are kept."""
        view = build_signboard_view(exhibit_data, "山田太郎")

        assert view.description_lines == [
            "日中はほとんど動かない。",
            "",
            "夜になると活発にゲームを始める。",
        ]
        assert view.description == exhibit_data.description

    def test_stats_in_display_order(self, exhibit_data):
        """One indicator per stat, labelled and targeted from the data."""
        view = build_signboard_view(exhibit_data, "山田太郎", delay_ms=300, duration_ms=1000)

        assert [s.key for s in view.stats] == list(STAT_LABELS)
        assert [s.label for s in view.stats] == list(STAT_LABELS.values())
        assert [s.target for s in view.stats] == [35, 72, 100, 0]
        assert all(s.delay_ms == 300 for s in view.stats)

    def test_mount_and_unmount_cascade(self, exhibit_data):
        """Mounting the view mounts every indicator."""
        view = build_signboard_view(exhibit_data, "山田太郎")

        async def scenario():
            view.mount()
            mounted = [s.is_mounted for s in view.stats]
            view.unmount()
            return mounted

        assert asyncio.run(scenario()) == [True] * 4
        assert view.mounted is False
        assert not any(s.is_mounted for s in view.stats)
