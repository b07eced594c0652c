import os
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"


def _require_env():
    """
    Server settings for end-to-end runs. Skips when no server is configured;
    a missing token is fine, the client then requests an anonymous one.
    """
    base_url = os.getenv("PDFDANCER_BASE_URL")
    if not base_url:
        pytest.skip("PDFDANCER_BASE_URL not set, skipping end-to-end test")
    return base_url, os.getenv("PDFDANCER_TOKEN")


def _require_env_and_fixture(name: str):
    base_url, token = _require_env()
    pdf_path = FIXTURES_DIR / name
    if not pdf_path.exists():
        pytest.skip(f"Fixture {name} not found in {FIXTURES_DIR}")
    return base_url, token, pdf_path
