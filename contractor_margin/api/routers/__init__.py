"""Route modules, imported lazily by the app factory."""
from __future__ import annotations

import importlib
import logging
from typing import List

from fastapi import APIRouter

logger = logging.getLogger(__name__)

# Module paths that provide a ``router`` attribute.
_ROUTER_MODULES = [
    "contractor_margin.api.routers.health",
    "contractor_margin.api.routers.jobs",
    "contractor_margin.api.routers.entries",
    "contractor_margin.api.routers.stats",
    "contractor_margin.api.routers.reports",
    "contractor_margin.api.routers.rpc",
]


def all_routers() -> List[APIRouter]:
    """Import and return every router module's ``router``. Import errors propagate."""
    routers: List[APIRouter] = []
    for mod_path in _ROUTER_MODULES:
        mod = importlib.import_module(mod_path)
        routers.append(mod.router)
        logger.debug("Loaded router %s", mod_path)
    return routers
