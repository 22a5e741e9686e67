"""Process, readiness and browser session runtime."""

from aidflow_smoke.runtime.playwright_adapter import BrowserSession, create_browser_session
from aidflow_smoke.runtime.polling import poll_until
from aidflow_smoke.runtime.readiness import wait_for_server
from aidflow_smoke.runtime.supervisor import LogRingBuffer, ServerHandle, ServerSupervisor

__all__ = [
    "BrowserSession",
    "create_browser_session",
    "poll_until",
    "wait_for_server",
    "LogRingBuffer",
    "ServerHandle",
    "ServerSupervisor",
]
