"""aidflow-smoke - new-case UI smoke harness for the legal-aid web app."""

from aidflow_smoke.config import SmokeConfig
from aidflow_smoke.core import (
    InteractionError,
    NetworkErrorRecord,
    PollTimeoutError,
    PreconditionError,
    SelectionNotFoundError,
    ServerNotReadyError,
    SmokeError,
    SmokeReport,
)
from aidflow_smoke.diagnostics import DiagnosticCollector
from aidflow_smoke.option_selector import select_first_option, select_option_by_name
from aidflow_smoke.runner import RunOutcome, SmokeRunner
from aidflow_smoke.scenario import CaseFormData, NewCaseScenario

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Config
    "SmokeConfig",
    # Models
    "SmokeReport",
    "NetworkErrorRecord",
    # Exceptions
    "SmokeError",
    "PollTimeoutError",
    "ServerNotReadyError",
    "PreconditionError",
    "InteractionError",
    "SelectionNotFoundError",
    # Harness
    "DiagnosticCollector",
    "select_option_by_name",
    "select_first_option",
    "CaseFormData",
    "NewCaseScenario",
    "SmokeRunner",
    "RunOutcome",
]
