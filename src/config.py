"""Runtime configuration for the Slack digest.

All settings come from environment variables (optionally loaded from a
``.env`` file by the CLI) and are collected once into a ``DigestConfig``
that is passed explicitly to each component.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, missing: list[str], reason: str = ""):
        self.missing = missing
        detail = reason or f"Missing required settings: {', '.join(missing)}"
        super().__init__(detail)


def _split_list(raw: Optional[str]) -> list[str]:
    """Split a comma separated env value, dropping blanks."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class DigestConfig:
    """Settings for one digest run.

    Attributes:
        slack_token: Slack bot token used for every API call.
        openai_api_key: OpenAI key for summary generation.
        db_host, db_port, db_name, db_user, db_password: PostgreSQL settings.
        default_channels: Channels digested for the default focus.
        support_channels: Channels digested for the "support" focus.
        email_to: Digest recipients. Delivery is skipped when empty.
        openai_model: Chat model used for the summary.
        token_budget: Word budget for the rendered message block.
        history_window_days: Trailing window of stored messages included in
            every digest, also the default watermark age.
        page_delay: Seconds to pause between history pages.
        rate_limit_delay: Minimum seconds to pause after a rate-limit reply.
        rate_limit_retries: Retries allowed per page after a rate-limit reply.
    """

    slack_token: str
    openai_api_key: str
    db_host: str
    db_port: str
    db_name: str
    db_user: str
    db_password: str
    default_channels: list[str] = field(default_factory=list)
    support_channels: list[str] = field(default_factory=list)
    email_to: list[str] = field(default_factory=list)
    openai_model: str = "gpt-4o-mini"
    token_budget: int = 3800
    history_window_days: int = 7
    page_delay: float = 1.2
    rate_limit_delay: float = 30.0
    rate_limit_retries: int = 1

    REQUIRED_ENV = (
        "SLACK_BOT_TOKEN",
        "OPENAI_API_KEY",
        "DB_HOST",
        "DB_PORT",
        "DB_NAME",
        "DB_USER",
        "DB_PASSWORD",
        "DEFAULT_FOCUS_CHANNELS",
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DigestConfig":
        """Build a config from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Populated DigestConfig.

        Raises:
            ConfigError: If required variables are missing or a numeric
                setting cannot be parsed.
        """
        env = os.environ if environ is None else environ

        missing = [key for key in cls.REQUIRED_ENV if not env.get(key, "").strip()]
        if missing:
            raise ConfigError(missing)

        try:
            return cls(
                slack_token=env["SLACK_BOT_TOKEN"],
                openai_api_key=env["OPENAI_API_KEY"],
                db_host=env["DB_HOST"],
                db_port=env["DB_PORT"],
                db_name=env["DB_NAME"],
                db_user=env["DB_USER"],
                db_password=env["DB_PASSWORD"],
                default_channels=_split_list(env.get("DEFAULT_FOCUS_CHANNELS")),
                support_channels=_split_list(env.get("SUPPORT_FOCUS_CHANNELS")),
                email_to=_split_list(env.get("EMAIL_TO")),
                openai_model=env.get("OPENAI_MODEL") or "gpt-4o-mini",
                token_budget=int(env.get("PROMPT_TOKEN_BUDGET", "3800")),
                history_window_days=int(env.get("HISTORY_WINDOW_DAYS", "7")),
                page_delay=float(env.get("SLACK_PAGE_DELAY", "1.2")),
                rate_limit_delay=float(env.get("SLACK_RATE_LIMIT_DELAY", "30")),
                rate_limit_retries=int(env.get("SLACK_RATE_LIMIT_RETRIES", "1")),
            )
        except ValueError as e:
            raise ConfigError([], reason=f"Invalid numeric setting: {e}") from e

    def channels_for_focus(self, focus: str) -> list[str]:
        """Return the channel list for a focus.

        Raises:
            ConfigError: If "support" is requested but no support channels
                are configured.
        """
        if focus == "support":
            if not self.support_channels:
                raise ConfigError(
                    ["SUPPORT_FOCUS_CHANNELS"],
                    reason="Focus 'support' selected, but SUPPORT_FOCUS_CHANNELS is empty",
                )
            return list(self.support_channels)
        return list(self.default_channels)
