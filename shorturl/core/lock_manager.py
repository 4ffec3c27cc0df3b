"""
Identifier Assignment Lock Manager

This module manages the lock that serializes short id assignment inside one
application instance. The registry holds it across the
read-max-id / insert-with-next-id sequence so two requests can never pick the
same id.

Design:
- One lock per application instance, shared across requests
- Created lazily on first use and recreated on startup, so it always belongs
  to the running event loop
- Separate instances sharing one database are covered by the unique index on
  short_id (see UrlRegistry)
"""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Global lock instance (created on startup or first use)
_assignment_lock: Optional[asyncio.Lock] = None


def get_assignment_lock() -> asyncio.Lock:
    """Get the instance-wide short id assignment lock."""
    global _assignment_lock

    if _assignment_lock is None:
        _assignment_lock = asyncio.Lock()
    return _assignment_lock


def reset_assignment_lock() -> asyncio.Lock:
    """
    Replace the assignment lock with a fresh one.

    Called on application startup (and by tests, which run each case on its
    own event loop).
    """
    global _assignment_lock

    if _assignment_lock is not None and _assignment_lock.locked():
        logger.warning("Replacing short id assignment lock while it is held")
    _assignment_lock = asyncio.Lock()
    return _assignment_lock
