"""Singleton dependency providers for FastAPI ``Depends()``."""
from __future__ import annotations

from typing import Optional

from ..config import ApiSettings

# Lazy singletons, initialised at first call rather than import time
# so the event loop is already running when async resources are needed.

_settings: Optional[ApiSettings] = None
_record_store = None
_rpc_dispatcher = None


def get_settings() -> ApiSettings:
    global _settings
    if _settings is None:
        _settings = ApiSettings()
    return _settings


def set_settings(settings: ApiSettings) -> None:
    """Pin the settings every provider reads (used by ``create_app``)."""
    global _settings
    _settings = settings


def get_record_store():
    """Return the singleton ``RecordStore``."""
    global _record_store
    if _record_store is None:
        from ..store.sqlite import RecordStore

        _record_store = RecordStore(get_settings().db_path)
    return _record_store


def get_margin_service():
    """A ``MarginService`` over the current record store (stateless, built per request)."""
    from ..services.margin_service import MarginService

    return MarginService(get_record_store())


def get_rpc_dispatcher():
    """Return the singleton tool-call ``RpcDispatcher``."""
    global _rpc_dispatcher
    if _rpc_dispatcher is None:
        from ...rpc.dispatcher import RpcDispatcher

        _rpc_dispatcher = RpcDispatcher()
    return _rpc_dispatcher
