import asyncio
import logging
import os
import sys
import traceback
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from aidflow_smoke.config import SmokeConfig
from aidflow_smoke.core.models import SmokeReport
from aidflow_smoke.diagnostics import DiagnosticCollector
from aidflow_smoke.report import emit_report, exit_status, write_artifacts
from aidflow_smoke.runtime.playwright_adapter import BrowserSession, create_browser_session
from aidflow_smoke.runtime.readiness import wait_for_server
from aidflow_smoke.runtime.supervisor import ServerHandle, ServerSupervisor
from aidflow_smoke.scenario import NewCaseScenario

logger = logging.getLogger(__name__)


@dataclass
class RunOutcome:
    report: SmokeReport
    error: BaseException | None = None

    @property
    def exit_code(self) -> int:
        return exit_status(self.report, self.error)


class SmokeRunner:
    """Provisions the server, drives the new-case scenario and assembles the report."""

    def __init__(
        self,
        config: SmokeConfig,
        supervisor: ServerSupervisor | None = None,
        session_factory: Callable[..., Awaitable[BrowserSession]] = create_browser_session,
        readiness: Callable[..., Awaitable[None]] = wait_for_server,
        scenario_factory: Callable[..., NewCaseScenario] = NewCaseScenario,
    ):
        self.config = config
        self.supervisor = supervisor or ServerSupervisor(config.server_command)
        self.session_factory = session_factory
        self.readiness = readiness
        self.scenario_factory = scenario_factory

    async def run(self) -> RunOutcome:
        """Execute one smoke run. Never raises for scenario failures."""
        config = self.config
        report = SmokeReport(base_url=config.base_url)
        collector = DiagnosticCollector()
        run_error: BaseException | None = None
        server: ServerHandle | None = None

        logger.info(f"🚀 Starting new-case smoke run against {config.base_url}")
        try:
            server = await self.supervisor.start_server(
                config.server_cwd, config.server_env(), config.port, skip=config.skip_server
            )
            await self.readiness(config.base_url, config.server_timeout_ms)
            await self._run_browser(report, collector)
        except Exception as e:
            logger.error(f"Smoke run failed: {e}")
            run_error = e
        finally:
            if server is not None:
                await server.stop()

        collector.flush_into(report)
        if server is not None and not report.succeeded(run_error):
            report.dev_log_tail = server.tail(config.log_tail_lines)

        outcome = RunOutcome(report=report, error=run_error)
        logger.info(f"Smoke run complete. Success: {outcome.exit_code == 0}")
        return outcome

    async def _run_browser(self, report: SmokeReport, collector: DiagnosticCollector) -> None:
        session = await self.session_factory(self.config.base_url, headless=self.config.headless)
        try:
            collector.attach(session.page)
            scenario = self.scenario_factory(session.page, self.config, collector)
            await scenario.run(report)
        finally:
            await session.close()


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    config = SmokeConfig.from_env()
    outcome = asyncio.run(SmokeRunner(config).run())

    emit_report(outcome.report)
    if config.artifacts_dir is not None:
        write_artifacts(outcome.report, config.artifacts_dir, outcome.error)

    if outcome.error is not None:
        traceback.print_exception(outcome.error, file=sys.stderr)
    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    main()
