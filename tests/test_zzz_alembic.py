"""Alembic migration tests against a real Postgres.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
Set LP_TEST_POSTGRES_URL (postgresql+asyncpg://...) to run them.
"""

import os
import subprocess
from pathlib import Path

import pytest

POSTGRES_URL = os.environ.get("LP_TEST_POSTGRES_URL", "")
ROOT = Path(__file__).resolve().parents[1]

pytestmark = pytest.mark.skipif(not POSTGRES_URL, reason="LP_TEST_POSTGRES_URL not set")


def _alembic(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["alembic", *args],
        capture_output=True,
        text=True,
        cwd=ROOT,
        env={**os.environ, "LP_DATABASE_URL": POSTGRES_URL},
    )


def test_alembic_upgrade_head() -> None:
    """alembic upgrade head succeeds without errors."""
    result = _alembic("upgrade", "head")
    assert result.returncode == 0, f"alembic upgrade failed: {result.stderr}"


def test_alembic_current_shows_head() -> None:
    """alembic current shows the latest revision."""
    result = _alembic("current")
    assert result.returncode == 0
    assert "001_initial_schema" in result.stdout
