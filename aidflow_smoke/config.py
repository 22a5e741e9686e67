import logging
import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5058"
DEFAULT_DATABASE_URL = "postgresql:///legal_aidflow"
DEFAULT_SERVER_COMMAND = "npm run dev"
DEFAULT_FIXTURE = "tests/fixtures/sample.pdf"
DEFAULT_SERVER_TIMEOUT_MS = 60_000


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


@dataclass
class SmokeConfig:
    base_url: str = DEFAULT_BASE_URL
    skip_server: bool = False
    database_url: str = DEFAULT_DATABASE_URL
    server_command: list[str] = field(default_factory=lambda: shlex.split(DEFAULT_SERVER_COMMAND))
    server_cwd: Path = field(default_factory=Path.cwd)
    server_timeout_ms: int = DEFAULT_SERVER_TIMEOUT_MS
    headless: bool = True
    fixture_path: Path = field(default_factory=lambda: Path.cwd() / DEFAULT_FIXTURE)
    username: str = "admin"
    password: str = "admin123"
    screenshot_dir: Path = field(default_factory=Path.cwd)
    artifacts_dir: Path | None = None
    log_tail_lines: int = 120

    @property
    def port(self) -> int:
        parsed = urlparse(self.base_url)
        if parsed.port:
            return parsed.port
        return 443 if parsed.scheme == "https" else 80

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SmokeConfig":
        """Build a config from environment variables (the harness takes no flags)."""
        env = os.environ if environ is None else environ
        cwd = Path.cwd()

        artifacts = env.get("SMOKE_ARTIFACTS_DIR")
        fixture = Path(env.get("SMOKE_FIXTURE", DEFAULT_FIXTURE))
        if not fixture.is_absolute():
            fixture = cwd / fixture

        config = cls(
            base_url=(env.get("BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            skip_server=env.get("SKIP_SERVER") == "1",
            database_url=env.get("DATABASE_URL") or DEFAULT_DATABASE_URL,
            server_command=shlex.split(env.get("SERVER_COMMAND") or DEFAULT_SERVER_COMMAND),
            server_cwd=cwd,
            server_timeout_ms=_int_from_env(env, "SERVER_TIMEOUT_MS", DEFAULT_SERVER_TIMEOUT_MS),
            headless=env.get("HEADLESS", "1") != "0",
            fixture_path=fixture,
            username=env.get("SMOKE_USERNAME", "admin"),
            password=env.get("SMOKE_PASSWORD", "admin123"),
            screenshot_dir=cwd,
            artifacts_dir=Path(artifacts) if artifacts else None,
        )
        logger.debug(f"Loaded smoke config for {config.base_url} (skip_server={config.skip_server})")
        return config

    def server_env(self) -> dict[str, str]:
        """Environment overlay handed to the supervised server."""
        return {"DATABASE_URL": self.database_url}
