"""
Repository-level pytest configuration (showcase-safe).

Why this exists:
  - Provide safe defaults for demo environments (no secrets embedded)
  - Keep live-console runs opt-in

Important:
  Values below are placeholders. Real console URLs and credentials belong in
  config/<ENV>.yaml or the CI secret store, never in this file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Set demo-safe environment defaults if not already provided by the user/CI.

    This prevents accidental leakage and keeps local runs predictable.
    """
    defaults = {
        # UI
        "UI_BASE_URL": "http://localhost:3000",
        # Live console runs are opt-in
        "UI_E2E": "0",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield
