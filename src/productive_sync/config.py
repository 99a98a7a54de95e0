"""
Configuration

All settings come from environment variables (a `.env` file is loaded by
the CLI first). Config objects are immutable and passed explicitly to
every collaborator.
"""

import os
import re
from dataclasses import dataclass
from datetime import date as date_cls
from typing import Mapping, Optional

DEFAULT_API_URL = "https://api.productive.io/api/v2"
DEFAULT_CHATGPT_MODEL = "gpt-4o-mini"

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


class ConfigError(Exception):
    """Missing or invalid configuration; fatal before any I/O"""


@dataclass(frozen=True)
class ApiCredentials:
    """Productive API credentials"""
    api_token: str
    org_id: str
    base_url: str = DEFAULT_API_URL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ApiCredentials":
        env = os.environ if environ is None else environ
        return cls(
            api_token=require_env("PRODUCTIVE_API_TOKEN", env),
            org_id=require_env("PRODUCTIVE_ORG_ID", env),
            base_url=env.get("PRODUCTIVE_API_URL") or DEFAULT_API_URL,
        )


@dataclass(frozen=True)
class LLMConfig:
    """Text generation endpoint used to refine notes"""
    api_key: str
    model: str = DEFAULT_CHATGPT_MODEL
    base_url: str = ""           # OpenAI-compatible endpoint, empty for api.openai.com


@dataclass(frozen=True)
class Config:
    """Settings for one run"""
    productive_api_token: str
    productive_org_id: str
    productive_person_id: str
    chatgpt_api_key: str
    scan_dirs: tuple[str, ...]
    git_author_name: str
    codex_sessions_dir: str
    date: str                                   # YYYY-MM-DD
    chatgpt_model: str = DEFAULT_CHATGPT_MODEL
    openai_base_url: str = ""
    productive_api_url: str = DEFAULT_API_URL
    confirm: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        date: Optional[str] = None,
        confirm: bool = False,
    ) -> "Config":
        """
        Build the config from environment variables

        Raises:
            ConfigError: listing every missing variable, or an invalid date
        """
        env = os.environ if environ is None else environ
        run_date = validate_date(date) if date else today_iso()

        missing = [
            key for key in (
                "PRODUCTIVE_API_TOKEN",
                "PRODUCTIVE_ORG_ID",
                "PRODUCTIVE_PERSON_ID",
                "SCAN_DIRS",
                "GIT_AUTHOR_NAME",
                "CODEX_SESSIONS_DIR",
            )
            if not env.get(key)
        ]
        chatgpt_api_key = env.get("CHATGPT_API_KEY") or env.get("OPENAI_API_KEY") or ""
        if not chatgpt_api_key:
            missing.append("one of CHATGPT_API_KEY, OPENAI_API_KEY")
        if missing:
            raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")

        scan_dirs = parse_scan_dirs(env["SCAN_DIRS"])
        if not scan_dirs:
            raise ConfigError("SCAN_DIRS does not name any folder")

        return cls(
            productive_api_token=env["PRODUCTIVE_API_TOKEN"],
            productive_org_id=env["PRODUCTIVE_ORG_ID"],
            productive_person_id=env["PRODUCTIVE_PERSON_ID"],
            chatgpt_api_key=chatgpt_api_key,
            scan_dirs=scan_dirs,
            git_author_name=env["GIT_AUTHOR_NAME"],
            codex_sessions_dir=os.path.expanduser(env["CODEX_SESSIONS_DIR"]),
            date=run_date,
            chatgpt_model=env.get("CHATGPT_MODEL") or DEFAULT_CHATGPT_MODEL,
            openai_base_url=env.get("OPENAI_BASE_URL", ""),
            productive_api_url=env.get("PRODUCTIVE_API_URL") or DEFAULT_API_URL,
            confirm=confirm,
        )

    @property
    def credentials(self) -> ApiCredentials:
        return ApiCredentials(
            api_token=self.productive_api_token,
            org_id=self.productive_org_id,
            base_url=self.productive_api_url,
        )

    @property
    def llm(self) -> LLMConfig:
        return LLMConfig(
            api_key=self.chatgpt_api_key,
            model=self.chatgpt_model,
            base_url=self.openai_base_url,
        )


def today_iso() -> str:
    return date_cls.today().isoformat()


def validate_date(value: str) -> str:
    """Accept YYYY-MM-DD only"""
    if not _DATE_RE.fullmatch(value):
        raise ConfigError(f"Invalid date format: {value}. Use YYYY-MM-DD.")
    try:
        date_cls.fromisoformat(value)
    except ValueError:
        raise ConfigError(f"Invalid date: {value}")
    return value


def parse_scan_dirs(raw: str) -> tuple[str, ...]:
    """Comma-separated folders, blanks dropped, `~` expanded"""
    return tuple(
        os.path.expanduser(d.strip())
        for d in raw.split(",")
        if d.strip()
    )


def require_env(key: str, environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    value = env.get(key)
    if not value:
        raise ConfigError(f"Missing required environment variable: {key}")
    return value
