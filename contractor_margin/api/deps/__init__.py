"""Dependency injection providers."""
from .auth import Identity, TokenIdentityResolver, optional_identity, require_identity
from .providers import (
    get_margin_service,
    get_record_store,
    get_rpc_dispatcher,
    get_settings,
    set_settings,
)

__all__ = [
    "Identity",
    "TokenIdentityResolver",
    "get_margin_service",
    "get_record_store",
    "get_rpc_dispatcher",
    "get_settings",
    "optional_identity",
    "require_identity",
    "set_settings",
]
