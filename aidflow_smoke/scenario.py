"""New-case smoke scenario.

A strictly ordered walk through the case creation wizard:

1. log in
2. open the cases list
3. require exactly one "add case" control
4-6. fill the three wizard steps (details, issue, documents)
7. check the review summary (soft)
8. submit and capture the new case id from the redirect
9. look for the uploaded document in the UI (best-effort)
10. confirm the upload through the documents API (authoritative)

Steps 1-6 and 8 raise on failure; 7, 9 and 10 only downgrade report flags.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from aidflow_smoke.config import SmokeConfig
from aidflow_smoke.core.exceptions import InteractionError, PreconditionError
from aidflow_smoke.core.models import SmokeReport
from aidflow_smoke.diagnostics import DiagnosticCollector
from aidflow_smoke.option_selector import select_first_option, select_option_by_name

logger = logging.getLogger(__name__)

MISSING_ADD_CASE_SCREENSHOT = "playwright-smoke-missing-add-case.png"
HOME_URL = re.compile(r"/$")
CASE_DETAIL_URL = re.compile(r"/cases/[a-zA-Z0-9-]+$")
_CASE_ID = re.compile(r"/cases/([^/?#]+)")


def format_local_datetime(value: datetime) -> str:
    """Format as the value of an ``<input type="datetime-local">`` (minute precision)."""
    return value.strftime("%Y-%m-%dT%H:%M")


def extract_case_id(url: str) -> str | None:
    match = _CASE_ID.search(url)
    return match.group(1) if match else None


def documents_contain(documents: Any, file_name: str) -> bool:
    """True when any listed attachment names ``file_name``."""
    if not isinstance(documents, list):
        return False
    for doc in documents:
        if not isinstance(doc, dict):
            continue
        name = doc.get("fileName") or doc.get("title") or ""
        if file_name in str(name):
            return True
    return False


@dataclass
class CaseFormData:
    case_number: str = field(default_factory=lambda: f"SMOKE-{int(time.time() * 1000)}")
    title: str = "Smoke Test Case"
    description: str = "Runtime smoke test: create case + upload one document."
    case_type: str = "Labor"
    issue_summary: str = "Smoke: issue summary"
    issue_details: str = "Smoke: issue details"
    jurisdiction: str = "Amman"
    related_laws: str = "Labor Law Article 1"
    doc_type: str = "ID Copy"

    def review_values(self, fixture_name: str) -> list[str]:
        return [self.case_number, self.title, self.issue_summary, fixture_name, self.doc_type]


class NewCaseScenario:
    """Drives the case creation wizard against a logged-out page."""

    def __init__(
        self,
        page: Page,
        config: SmokeConfig,
        collector: DiagnosticCollector,
        data: CaseFormData | None = None,
    ):
        self.page = page
        self.config = config
        self.collector = collector
        self.data = data or CaseFormData()
        self.fixture_path = Path(config.fixture_path)

    async def _visible(self, test_id: str, timeout_ms: int) -> Any:
        locator = self.page.get_by_test_id(test_id)
        try:
            await locator.wait_for(state="visible", timeout=timeout_ms)
        except PlaywrightTimeout:
            raise InteractionError(f"{test_id} not visible within {timeout_ms}ms") from None
        return locator

    async def _wait_for_url(self, pattern: re.Pattern, timeout_ms: int) -> None:
        try:
            await self.page.wait_for_url(pattern, timeout=timeout_ms)
        except PlaywrightTimeout:
            raise InteractionError(
                f"URL did not match {pattern.pattern} within {timeout_ms}ms (at {self.page.url})"
            ) from None

    async def run(self, report: SmokeReport) -> SmokeReport:
        await self.login()
        await self.open_cases()
        await self.require_single_add_button()
        await self.fill_case_details()
        await self.fill_issue()
        await self.attach_document()
        await self.check_review_summary(report)

        case_id = await self.submit()
        report.case_created = True
        report.created_case_id = case_id

        report.ui_document_visible_ok = await self.document_visible_in_ui()
        report.document_uploaded_ok = await self.document_listed_by_api(case_id)
        return report

    async def login(self) -> None:
        page = self.page
        logger.info("Step 1: login")
        await page.goto("/login", wait_until="domcontentloaded")
        await page.get_by_test_id("input-username").fill(self.config.username)
        await page.get_by_test_id("input-password").fill(self.config.password)
        await page.get_by_test_id("button-login").click()
        await self._wait_for_url(HOME_URL, 30_000)

    async def open_cases(self) -> None:
        logger.info("Step 2: cases list")
        await self.page.goto("/cases", wait_until="domcontentloaded")
        # The search box only renders with the list view, not the app shell.
        await self._visible("input-search", 30_000)

    async def require_single_add_button(self) -> None:
        count = await self.page.locator('[data-testid="button-add-case"]').count()
        if count == 1:
            return

        screenshot_path = Path(self.config.screenshot_dir) / MISSING_ADD_CASE_SCREENSHOT
        await self.page.screenshot(path=str(screenshot_path), full_page=True)
        logger.error(f"Expected one add-case button, found {count}. Screenshot: {screenshot_path}")
        raise PreconditionError(
            f"Add-case button not found exactly once (count={count}). Screenshot: {screenshot_path}",
            screenshot_path=str(screenshot_path),
        )

    async def fill_case_details(self) -> None:
        page = self.page
        data = self.data
        logger.info(f"Step 4: case details ({data.case_number})")
        await page.get_by_test_id("button-add-case").click()
        case_number = await self._visible("input-case-number", 15_000)

        await case_number.fill(data.case_number)
        await page.get_by_test_id("input-case-title").fill(data.title)
        await page.get_by_test_id("textarea-case-description").fill(data.description)

        await select_first_option(page, "select-case-beneficiary")
        await select_option_by_name(page, "select-case-type", data.case_type)

        await page.get_by_test_id("button-step-next").click()

    async def fill_issue(self) -> None:
        page = self.page
        data = self.data
        logger.info("Step 5: issue")
        await page.get_by_test_id("textarea-issue-summary").fill(data.issue_summary)
        await page.get_by_test_id("textarea-issue-details").fill(data.issue_details)

        await page.get_by_test_id("switch-urgency").click()
        urgency_date = format_local_datetime(datetime.now() + timedelta(hours=1))
        await page.get_by_test_id("input-urgency-date").fill(urgency_date)

        await page.get_by_test_id("input-jurisdiction").fill(data.jurisdiction)
        await page.get_by_test_id("textarea-related-laws").fill(data.related_laws)

        await page.get_by_test_id("button-step-next").click()

    async def attach_document(self) -> None:
        page = self.page
        logger.info(f"Step 6: attach {self.fixture_path.name}")
        await page.get_by_test_id("input-doc-draft-file").set_input_files(str(self.fixture_path))
        await page.get_by_test_id("input-doc-draft-type").fill(self.data.doc_type)
        await page.get_by_test_id("switch-doc-draft-public").click()
        await page.get_by_test_id("button-doc-draft-add").click()

        await page.get_by_test_id("button-step-next").click()

    async def check_review_summary(self, report: SmokeReport) -> bool:
        logger.info("Step 7: review")
        summary = await self._visible("review-summary", 10_000)
        text = await summary.inner_text()

        missing = [v for v in self.data.review_values(self.fixture_path.name) if v not in text]
        if missing:
            logger.warning(f"Review summary is missing: {missing}")
        report.review_summary_ok = not missing
        return report.review_summary_ok

    async def submit(self) -> str:
        page = self.page
        logger.info("Step 8: submit")
        await page.get_by_test_id("checkbox-acknowledge").click()
        await page.get_by_test_id("button-step-submit").click()

        await self._wait_for_url(CASE_DETAIL_URL, 30_000)
        case_id = extract_case_id(page.url)
        if not case_id:
            raise InteractionError(f"No case id in redirect URL {page.url}")
        logger.info(f"✅ Case created: {case_id}")
        return case_id

    async def document_visible_in_ui(self, timeout_ms: int = 15_000) -> bool:
        """Best-effort check that the new case view shows the uploaded file."""
        try:
            await self.page.get_by_text("Case Documents").first.wait_for(timeout=timeout_ms)
            await self.page.get_by_text(self.fixture_path.name).first.wait_for(timeout=timeout_ms)
        except PlaywrightError as e:
            logger.warning(f"Uploaded document not visible in the case view: {e}")
            return False
        return True

    async def document_listed_by_api(self, case_id: str) -> bool:
        """Ask the documents API (not the DOM) whether the fixture is attached."""
        path = f"/api/cases/{case_id}/documents"
        try:
            response = await self.page.request.get(path)
            if not response.ok:
                raise InteractionError(f"listDocuments failed: {response.status}")
            documents = await response.json()
        except Exception as e:
            logger.error(f"Document verification via API failed: {e}")
            self.collector.record_network_failure("GET", f"{self.config.base_url}{path}", 0)
            self.collector.record_console(str(e))
            return False

        found = documents_contain(documents, self.fixture_path.name)
        if not found:
            logger.warning(f"{self.fixture_path.name} not listed for case {case_id}")
        return found
