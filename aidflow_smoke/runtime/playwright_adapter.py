import logging
import os
from dataclasses import dataclass

from playwright.async_api import Browser, BrowserContext, Page, Playwright

logger = logging.getLogger(__name__)

# Default timeouts (can be overridden per session)
DEFAULT_NAV_TIMEOUT_MS = int(os.environ.get("NAV_TIMEOUT_MS", "30000"))
DEFAULT_ACTION_TIMEOUT_MS = int(os.environ.get("ACTION_TIMEOUT_MS", "30000"))


@dataclass
class BrowserSession:
    """Browser, context and page owned exclusively by one smoke run."""

    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page

    async def close(self) -> None:
        """Close context, then browser, then the driver. Each step runs even if one fails."""
        try:
            await self.context.close()
        except Exception as e:
            logger.warning(f"Closing browser context failed: {e}")
        try:
            await self.browser.close()
        finally:
            await self.playwright.stop()


async def create_browser_session(
    base_url: str,
    headless: bool = True,
    nav_timeout_ms: int | None = None,
    action_timeout_ms: int | None = None,
) -> BrowserSession:
    """Factory to create a correctly configured Chromium session for ``base_url``."""
    from playwright.async_api import async_playwright

    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(headless=headless)
    except Exception:
        await playwright.stop()
        raise

    try:
        context = await browser.new_context(
            base_url=base_url,
            viewport={"width": 1280, "height": 800},
            ignore_https_errors=True,
        )
        context.set_default_navigation_timeout(
            nav_timeout_ms if nav_timeout_ms is not None else DEFAULT_NAV_TIMEOUT_MS
        )
        context.set_default_timeout(
            action_timeout_ms if action_timeout_ms is not None else DEFAULT_ACTION_TIMEOUT_MS
        )
        page = await context.new_page()
    except Exception:
        await browser.close()
        await playwright.stop()
        raise

    logger.info(f"Browser session ready (headless={headless}, base_url={base_url})")
    return BrowserSession(playwright=playwright, browser=browser, context=context, page=page)
