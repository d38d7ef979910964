from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hercules_bridge.schemas.models import TestResult


class BridgeError(Exception):
    """Base class for errors raised by the bridge."""


class ConfigurationError(BridgeError):
    pass


class TestCaseNotFoundError(BridgeError):
    __test__ = False

    def __init__(self, test_case_id: str):
        super().__init__(f"Test case {test_case_id} not found")
        self.test_case_id = test_case_id


class InvalidRequestError(BridgeError):
    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = list(fields or [])


class CollectionError(BridgeError):
    pass


class RunFailure(BridgeError):
    """A run that was rejected. ``result`` is the failure-shaped TestResult."""

    def __init__(self, result: "TestResult"):
        super().__init__(result.error or "Test case execution failed")
        self.result = result
