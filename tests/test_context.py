"""Tests for leaked tunnel detection."""

from unittest.mock import Mock

from tunnelify.context import ResourceLeakDetector


class Resource:
    """Weak-referenceable stand-in for a tunnel."""

    def __init__(self, close_error: Exception | None = None) -> None:
        self.close_blocking = Mock(side_effect=close_error)


class TestResourceLeakDetector:
    def test_register_and_unregister(self):
        resource = Resource()

        ResourceLeakDetector.register_resource(resource)
        assert ResourceLeakDetector.get_active_count() == 1

        ResourceLeakDetector.unregister_resource(resource)
        assert ResourceLeakDetector.get_active_count() == 0

    def test_unregister_unknown_resource(self):
        ResourceLeakDetector.unregister_resource(Resource())
        assert ResourceLeakDetector.get_active_count() == 0

    def test_resources_are_weakly_held(self):
        ResourceLeakDetector.register_resource(Resource())
        assert ResourceLeakDetector.get_active_count() == 0

    def test_cleanup_closes_leaked_resources(self):
        first, second = Resource(), Resource()
        ResourceLeakDetector.register_resource(first)
        ResourceLeakDetector.register_resource(second)

        ResourceLeakDetector.cleanup_leaked()

        first.close_blocking.assert_called_once_with()
        second.close_blocking.assert_called_once_with()
        assert ResourceLeakDetector.get_active_count() == 0

    def test_cleanup_continues_after_failure(self):
        failing = Resource(close_error=OSError("ssh missing"))
        healthy = Resource()
        ResourceLeakDetector.register_resource(failing)
        ResourceLeakDetector.register_resource(healthy)

        ResourceLeakDetector.cleanup_leaked()

        healthy.close_blocking.assert_called_once_with()
        assert ResourceLeakDetector.get_active_count() == 0
