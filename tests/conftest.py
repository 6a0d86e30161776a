"""Pytest configuration and fixtures."""

import os
from typing import Any

import pytest


def pytest_configure(config):
    """Set up test environment variables before tests run."""
    # Set required environment variables for testing
    os.environ.setdefault("GOOGLE_PROJECT_ID", "test-project")
    os.environ.setdefault("GOOGLE_LOCATION", "us-central1")
    os.environ.setdefault("EXPORT_SCALE", "1")


SAMPLE_PAYLOAD: dict[str, Any] = {
    "classification": "霊長目ヒト科・夜行性",
    "dangerLevel": "★★☆☆☆（締め切り前は凶暴）",
    "scientificName": "Homo procrastinatus",
    "description": "日中はほとんど動かない。\n\n夜になると活発にゲームを始める。",
    "stats": {"stamina": 35, "intelligence": 72, "laziness": 100, "charm": 0},
    "funFact": "好物のカップ麺の音を聞くと巣穴から出てくる。",
}


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """Raw model payload with camelCase keys."""
    return {**SAMPLE_PAYLOAD, "stats": dict(SAMPLE_PAYLOAD["stats"])}


@pytest.fixture
def exhibit_data(sample_payload):
    """Validated ExhibitData built from the sample payload."""
    from src.chains.exhibit_generator import ExhibitData

    return ExhibitData.model_validate(sample_payload)


@pytest.fixture
def mock_settings():
    """Provide mock settings for testing."""
    from src.config import Settings

    return Settings(
        google_project_id="test-project",
        google_location="us-central1",
    )
