"""Identity resolution for owner-scoped endpoints."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Depends, Request

from ..config import ApiSettings
from ..errors import AuthenticationError
from .providers import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The resolved caller. Passed explicitly to every store and service call."""

    owner_id: str


class TokenIdentityResolver:
    """Resolve a request's bearer token / API key to the owner it belongs to.

    Reads the token from ``Authorization: Bearer <token>`` or the
    ``X-API-Key`` header. When auth is disabled every request resolves to
    ``dev_owner_id``.
    """

    def __init__(self, tokens: Dict[str, str], *, enabled: bool = True, dev_owner_id: str = "") -> None:
        self._tokens = dict(tokens)
        self.enabled = enabled
        self.dev_owner_id = dev_owner_id

    @classmethod
    def from_settings(cls, settings: ApiSettings) -> "TokenIdentityResolver":
        tokens = settings.token_map()
        if settings.auth_enabled and not tokens:
            logger.debug("Auth is enabled with no tokens configured; rejecting all callers")
        return cls(tokens, enabled=settings.auth_enabled, dev_owner_id=settings.dev_owner_id)

    def resolve(self, request: Request) -> Optional[Identity]:
        """Return the caller's identity, or ``None`` when it cannot be resolved."""
        if not self.enabled:
            return Identity(owner_id=self.dev_owner_id)

        token: str | None = None
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:].strip()
        if not token:
            token = request.headers.get("X-API-Key", "").strip() or None
        if not token:
            logger.debug("Request without credentials: %s %s", request.method, request.url.path)
            return None

        owner_id = self._tokens.get(token)
        if owner_id is None:
            logger.debug("Unknown token on %s %s", request.method, request.url.path)
            return None
        return Identity(owner_id=owner_id)


def get_identity_resolver(settings: ApiSettings = Depends(get_settings)) -> TokenIdentityResolver:
    """Resolver built from the active settings; tests override via ``dependency_overrides``."""
    return TokenIdentityResolver.from_settings(settings)


async def optional_identity(
    request: Request,
    resolver: TokenIdentityResolver = Depends(get_identity_resolver),
) -> Optional[Identity]:
    """FastAPI dependency: the caller's identity, or ``None``."""
    return resolver.resolve(request)


async def require_identity(
    identity: Optional[Identity] = Depends(optional_identity),
) -> Identity:
    """FastAPI dependency that rejects unauthenticated callers.

    Raises
    ------
    AuthenticationError
        If no identity could be resolved (rendered as 401).
    """
    if identity is None:
        raise AuthenticationError("Unauthorized")
    return identity
