"""Shared test fixtures."""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def probe_lines() -> list[str]:
    return (FIXTURES_DIR / "probe_stderr.txt").read_text().splitlines()


@pytest.fixture
def dash_lines() -> list[str]:
    return (FIXTURES_DIR / "dash_stderr.txt").read_text().splitlines()


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"
