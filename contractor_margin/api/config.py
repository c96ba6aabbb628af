"""Environment-driven settings for the API layer."""
from __future__ import annotations

import logging
from typing import Dict

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class ApiSettings(BaseSettings):
    """Immutable settings loaded from environment / .env file."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: str = "http://localhost:3000,http://localhost:8000"
    db_path: str = "contractor_margin.db"
    log_level: str = "INFO"

    # Bearer tokens mapped to the owner they authenticate: "tok1:owner1,tok2:owner2"
    auth_enabled: bool = True
    api_tokens: str = ""
    # Owner every request acts as when auth is disabled (local dev only)
    dev_owner_id: str = "local-dev"

    model_config = {"env_prefix": "CM_API_"}

    def token_map(self) -> Dict[str, str]:
        """Parse ``api_tokens`` into ``{token: owner_id}``; malformed pairs are skipped."""
        out: Dict[str, str] = {}
        for pair in self.api_tokens.split(","):
            pair = pair.strip()
            if not pair:
                continue
            token, sep, owner_id = pair.partition(":")
            token, owner_id = token.strip(), owner_id.strip()
            if not sep or not token or not owner_id:
                logger.warning("Ignoring malformed CM_API_API_TOKENS entry")
                continue
            out[token] = owner_id
        return out
