"""
HTTP Client Module

Blocking HTTP access for reading the source chain.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
