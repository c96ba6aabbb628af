"""Response shaping for the REST layer."""
from .envelope import ApiResponse, ErrorKind

__all__ = ["ApiResponse", "ErrorKind"]
