"""Owner-scoped services shared by the REST routers and the tool-call endpoint."""
from .margin_service import JobDetail, MarginService

__all__ = ["JobDetail", "MarginService"]
