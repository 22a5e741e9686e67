"""Passive capture of browser-side failure signals.

One collector is attached per page and read only after the session closes,
so nothing leaks between runs.
"""

import logging
from typing import Any

from aidflow_smoke.core.models import NetworkErrorRecord, SmokeReport

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"
UNKNOWN_PAGE_ERROR = "Unknown page error"


def describe_page_error(error: Any) -> str:
    """Normalize an uncaught page exception: stack, then message, then str()."""
    for attr in ("stack", "message"):
        value = getattr(error, attr, None)
        if value:
            return str(value)
    if error is not None:
        text = str(error)
        if text:
            return text
    return UNKNOWN_PAGE_ERROR


class DiagnosticCollector:
    """Accumulates console errors, page errors and failed API responses in order."""

    def __init__(self, api_prefix: str = API_PREFIX):
        self.api_prefix = api_prefix
        self.console_errors: list[str] = []
        self.page_errors: list[str] = []
        self.network_errors: list[NetworkErrorRecord] = []

    def attach(self, page: Any) -> "DiagnosticCollector":
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)
        page.on("response", self._on_response)
        return self

    def _on_console(self, msg: Any) -> None:
        if msg.type == "error":
            self.console_errors.append(msg.text)

    def _on_page_error(self, error: Any) -> None:
        self.page_errors.append(describe_page_error(error))

    def _on_response(self, response: Any) -> None:
        url = response.url
        status = response.status
        if self.api_prefix in url and status >= 400:
            self.record_network_failure(response.request.method, url, status)

    def record_network_failure(self, method: str, url: str, status: int) -> None:
        logger.debug(f"API failure observed: {method} {url} -> {status}")
        self.network_errors.append(NetworkErrorRecord(method=method, url=url, status=status))

    def record_console(self, text: str) -> None:
        self.console_errors.append(text)

    def flush_into(self, report: SmokeReport) -> SmokeReport:
        report.console_errors.extend(self.console_errors)
        report.page_errors.extend(self.page_errors)
        report.network_errors.extend(self.network_errors)
        return report
