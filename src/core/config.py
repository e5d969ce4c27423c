"""
Slack client configuration.

Settings come from environment variables (loaded from `.env` via
`python-dotenv`). Callers may also build a `SlackConfig` directly and pass
it to the integration functions, which is what the tests do.

Environment configuration:
- `SLACK_TOKEN` — bearer token. When missing, every Slack call is a logged no-op.
- `SLACK_API_BASE` — API root (default: `https://slack.com/api`).
- `SLACK_DEFAULT_CHANNEL` — channel used by `post_message` when none is given.
- `SLACK_TIMEOUT_S` — request timeout in seconds (default: 30).
- `SLACK_CATCH_ERRORS` — when truthy, Slack errors are logged and the call
  returns None instead of raising.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

DEFAULT_API_BASE = "https://slack.com/api"
DEFAULT_TIMEOUT_S = 30.0


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class SlackConfig:
    token: Optional[str] = None
    api_base: str = DEFAULT_API_BASE
    default_channel: Optional[str] = None
    timeout_s: float = DEFAULT_TIMEOUT_S
    catch_errors: bool = False

    @classmethod
    def from_env(cls) -> "SlackConfig":
        """Build a config from the process environment (after loading `.env`)."""
        load_dotenv()
        token = (os.getenv("SLACK_TOKEN") or "").strip() or None
        api_base = (os.getenv("SLACK_API_BASE") or DEFAULT_API_BASE).strip()
        channel = (os.getenv("SLACK_DEFAULT_CHANNEL") or "").strip() or None
        timeout = float(os.getenv("SLACK_TIMEOUT_S") or DEFAULT_TIMEOUT_S)
        return cls(
            token=token,
            api_base=api_base.rstrip("/"),
            default_channel=channel,
            timeout_s=timeout,
            catch_errors=_flag(os.getenv("SLACK_CATCH_ERRORS")),
        )

    def endpoint(self, method: str) -> str:
        return f"{self.api_base}/{method}"
