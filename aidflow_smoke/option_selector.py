"""Keyboard-driven selection for custom (non-native) dropdown widgets.

Typing characters into these widgets triggers a typeahead jump that schedules
a delayed focus(); if it fires after the listbox unmounted the page logs a
``null.focus`` error. Selection therefore only ever uses ArrowDown/Enter.
"""

import asyncio
import logging
from typing import Any

from playwright.async_api import TimeoutError as PlaywrightTimeout

from aidflow_smoke.core.exceptions import InteractionError, SelectionNotFoundError

logger = logging.getLogger(__name__)

MAX_ADVANCES = 25
LISTBOX_TIMEOUT_MS = 10_000
SETTLE_S = 0.05
HIGHLIGHTED_OPTION = '[role="option"][data-highlighted]'


def _normalize(text: str) -> str:
    return str(text).strip().lower()


def option_matches(option_text: str, target: str) -> bool:
    """True when the normalized option equals or contains the normalized target."""
    option = _normalize(option_text)
    wanted = _normalize(target)
    return option == wanted or wanted in option


async def _open_listbox(page: Any, trigger_test_id: str, timeout_ms: int) -> None:
    await page.get_by_test_id(trigger_test_id).click()
    try:
        await page.get_by_role("listbox").wait_for(state="visible", timeout=timeout_ms)
    except PlaywrightTimeout:
        raise InteractionError(
            f"Listbox for {trigger_test_id} did not open within {timeout_ms}ms"
        ) from None
    # Seed a highlighted option without typeahead input.
    await page.keyboard.press("ArrowDown")


async def select_option_by_name(
    page: Any,
    trigger_test_id: str,
    option_name: str,
    *,
    max_advances: int = MAX_ADVANCES,
    listbox_timeout_ms: int = LISTBOX_TIMEOUT_MS,
    settle_s: float = SETTLE_S,
) -> str:
    """Walk the highlighted option down the list until it matches ``option_name``.

    Returns:
        The text of the option that was confirmed

    Raises:
        InteractionError: If the listbox never became visible
        SelectionNotFoundError: If no match appeared within ``max_advances``
    """
    await _open_listbox(page, trigger_test_id, listbox_timeout_ms)

    for _ in range(max_advances):
        if settle_s:
            await asyncio.sleep(settle_s)
        highlighted = page.locator(HIGHLIGHTED_OPTION).first
        if await highlighted.count():
            text = await highlighted.inner_text()
            if option_matches(text, option_name):
                await page.keyboard.press("Enter")
                logger.info(f"Selected '{text.strip()}' in {trigger_test_id}")
                return text.strip()
        await page.keyboard.press("ArrowDown")

    raise SelectionNotFoundError(option_name, trigger_test_id)


async def select_first_option(
    page: Any,
    trigger_test_id: str,
    *,
    listbox_timeout_ms: int = LISTBOX_TIMEOUT_MS,
) -> None:
    """Confirm whichever option the first ArrowDown highlights."""
    await _open_listbox(page, trigger_test_id, listbox_timeout_ms)
    await page.keyboard.press("Enter")
    logger.info(f"Selected first option in {trigger_test_id}")
