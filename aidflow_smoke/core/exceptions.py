"""Exceptions raised by the smoke harness."""


class SmokeError(Exception):
    """Base exception for smoke harness errors."""

    def __init__(self, message: str, kind: str = "unknown") -> None:
        """Initialize error.

        Args:
            message: Error message
            kind: Taxonomy bucket (provisioning, precondition, interaction)
        """
        self.kind = kind
        super().__init__(message)


class PollTimeoutError(SmokeError):
    """Raised when a polled condition does not hold before its deadline."""

    def __init__(
        self,
        description: str,
        timeout_s: float,
        kind: str = "interaction",
        message: str | None = None,
    ) -> None:
        self.description = description
        self.timeout_s = timeout_s
        super().__init__(
            message or f"Timed out after {timeout_s:g}s waiting for {description}", kind=kind
        )


class ServerNotReadyError(PollTimeoutError):
    """Raised when the application server never answers the liveness probe."""

    def __init__(self, url: str, timeout_ms: int) -> None:
        """Initialize error.

        Args:
            url: Probed URL
            timeout_ms: Readiness budget in milliseconds
        """
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(
            f"server at {url}",
            timeout_ms / 1000,
            kind="provisioning",
            message=f"Server not ready within {timeout_ms}ms: {url}",
        )


class PreconditionError(SmokeError):
    """Raised when the page does not offer a required control exactly once."""

    def __init__(self, message: str, screenshot_path: str | None = None) -> None:
        self.screenshot_path = screenshot_path
        super().__init__(message, kind="precondition")


class InteractionError(SmokeError):
    """Raised when a required element never becomes usable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind="interaction")


class SelectionNotFoundError(InteractionError):
    """Raised when a dropdown has no option matching the requested name."""

    def __init__(self, option_name: str, trigger_test_id: str) -> None:
        self.option_name = option_name
        self.trigger_test_id = trigger_test_id
        super().__init__(f"Failed to select option '{option_name}' for {trigger_test_id}")
