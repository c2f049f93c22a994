"""Tracking of open tunnels so background ssh masters are not leaked."""

import atexit
import threading
import weakref
from typing import Any

from .logging import get_logger

logger = get_logger(__name__)


class ResourceLeakDetector:
    """Detects tunnels still open at interpreter exit and closes them"""

    _active_resources: weakref.WeakSet[Any] = weakref.WeakSet()
    _lock = threading.Lock()

    @classmethod
    def register_resource(cls, resource: Any) -> None:
        """Register an open resource"""
        with cls._lock:
            cls._active_resources.add(resource)

    @classmethod
    def unregister_resource(cls, resource: Any) -> None:
        """Unregister a resource once it has been closed"""
        with cls._lock:
            cls._active_resources.discard(resource)

    @classmethod
    def get_active_count(cls) -> int:
        """Get count of open resources"""
        with cls._lock:
            return len(cls._active_resources)

    @classmethod
    def cleanup_leaked(cls) -> None:
        """Close every resource that is still registered"""
        with cls._lock:
            leaked_resources = list(cls._active_resources)

        for resource in leaked_resources:
            try:
                resource.close_blocking()
                logger.warning("Closed leaked tunnel", resource=repr(resource))
            except Exception as e:
                logger.error("Failed to close leaked tunnel", error=str(e))
            finally:
                cls.unregister_resource(resource)


atexit.register(ResourceLeakDetector.cleanup_leaked)
