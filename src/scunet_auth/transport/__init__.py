"""
Transport layer for captive-portal HTTP traffic.
"""

from .client import HTTPTransport, HTTPRequest

__all__ = [
    "HTTPTransport",
    "HTTPRequest",
]
