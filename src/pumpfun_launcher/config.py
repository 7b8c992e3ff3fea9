from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .errors import ConfigError
from .project_constants import DEFAULT_RPC_TEMPLATE, DEFAULT_VANITY_STATUS_URL

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be true or false, got {raw!r}.")


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    private_key: str = field(repr=False)
    dry_run: bool = False
    vanity_enabled: bool = True
    vanity_status_url: str = DEFAULT_VANITY_STATUS_URL

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv()

        private_key = os.getenv("PRIVATE_KEY", "").strip()
        if not private_key:
            raise ConfigError(
                "Missing PRIVATE_KEY (base58 wallet secret). Put it in .env or export it."
            )

        return Settings(
            rpc_url=_resolve_rpc_url(rpc_url_override),
            private_key=private_key,
            dry_run=_env_flag("DRY_RUN", False),
            vanity_enabled=_env_flag("VANITY_ENABLED", True),
            vanity_status_url=(
                os.getenv("VANITY_STATUS_URL", "").strip().rstrip("/")
                or DEFAULT_VANITY_STATUS_URL
            ),
        )


def _resolve_rpc_url(rpc_url_override: str | None) -> str:
    # If user provides --rpc-url, trust it.
    if rpc_url_override:
        return rpc_url_override

    env_rpc = os.getenv("RPC_URL", "").strip()
    if env_rpc:
        return env_rpc

    helius_key = os.getenv("HELIUS_API_KEY", "").strip()
    if not helius_key:
        raise ConfigError(
            "Missing HELIUS_API_KEY (or RPC_URL). Put it in .env or export it."
        )
    return DEFAULT_RPC_TEMPLATE.format(api_key=helius_key)
