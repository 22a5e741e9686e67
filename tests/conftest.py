"""Pytest configuration and fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from aidflow_smoke.config import SmokeConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def smoke_config(tmp_path):
    """Config pointing screenshots at a temp dir and the fixture at the checked-in PDF."""
    return SmokeConfig(
        base_url="http://localhost:5058",
        skip_server=True,
        fixture_path=FIXTURES_DIR / "sample.pdf",
        screenshot_dir=tmp_path,
        server_cwd=tmp_path,
        server_timeout_ms=1000,
    )


def make_locator(inner_text: str = "") -> MagicMock:
    locator = MagicMock()
    locator.fill = AsyncMock()
    locator.click = AsyncMock()
    locator.wait_for = AsyncMock()
    locator.set_input_files = AsyncMock()
    locator.inner_text = AsyncMock(return_value=inner_text)
    return locator


@pytest.fixture
def fake_page():
    """MagicMock page whose test-id locators are created lazily and remembered."""
    page = MagicMock()
    page.locators = {}

    def by_test_id(test_id):
        if test_id not in page.locators:
            page.locators[test_id] = make_locator()
        return page.locators[test_id]

    page.get_by_test_id.side_effect = by_test_id
    page.locator.return_value.count = AsyncMock(return_value=1)
    page.goto = AsyncMock()
    page.wait_for_url = AsyncMock()
    page.screenshot = AsyncMock()
    page.keyboard.press = AsyncMock()
    page.url = "http://localhost:5058/cases/abc-123"

    text_locator = MagicMock()
    text_locator.first.wait_for = AsyncMock()
    page.get_by_text.return_value = text_locator

    response = MagicMock(ok=True, status=200)
    response.json = AsyncMock(return_value=[{"id": "d1", "fileName": "sample.pdf"}])
    page.request.get = AsyncMock(return_value=response)
    return page
