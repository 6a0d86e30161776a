"""Presentation helpers for the exhibit page."""

from src.ui.signboard import SignboardView, StatIndicator, build_signboard_view
from src.ui.state import InteractionState, Phase
from src.ui.utils import (
    exhibit_file_name,
    format_danger_level,
    split_description,
)

__all__ = [
    "InteractionState",
    "Phase",
    "SignboardView",
    "StatIndicator",
    "build_signboard_view",
    "exhibit_file_name",
    "format_danger_level",
    "split_description",
]
