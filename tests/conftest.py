from __future__ import annotations

from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def defaults_config() -> Path:
    return ROOT / "config" / "defaults.json"
