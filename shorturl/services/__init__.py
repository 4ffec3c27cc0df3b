"""
Services module for business logic separation.

UrlRegistry owns the URL to short id mappings and is the only place ids are
assigned. Endpoints call it; it never builds HTTP responses itself.
"""

from shorturl.services.registry import UrlRegistry

__all__ = ["UrlRegistry"]
