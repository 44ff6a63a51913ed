"""Error taxonomy for contract validation.

Two families of errors exist:

- ``ContractLoadError`` is fatal. It is raised when the contract document or an
  expectation suite cannot be read or does not fit the typed model, and it
  aborts the run before any assertion executes.
- ``ContractAssertionError`` and its subclasses are raised by individual
  assertions. The validator catches them per assertion and records a failed
  result, so one failing expectation never hides another.

Example:
    >>> from apicontract.errors import MismatchError
    >>> raise MismatchError("summary differs", expected="a", actual="b")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class FailureKind(str, Enum):
    """Category of a failed assertion."""

    LOAD = "load"
    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"
    ORDERING = "ordering"


class ContractError(Exception):
    """Base class for all apicontract errors."""


class ContractLoadError(ContractError):
    """Raised when a document or expectation suite cannot be loaded."""

    kind = FailureKind.LOAD


class ContractAssertionError(ContractError):
    """Base class for recoverable, per-assertion failures."""

    kind: FailureKind = FailureKind.MISMATCH

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def expected(self) -> Any:
        return None

    @property
    def actual(self) -> Any:
        return None


class NotFoundError(ContractAssertionError):
    """An expected path, operation, schema or reference target is absent."""

    kind = FailureKind.NOT_FOUND

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class MismatchError(ContractAssertionError):
    """A value is present but does not match the expectation."""

    kind = FailureKind.MISMATCH

    def __init__(self, message: str, *, expected: Any = None, actual: Any = None) -> None:
        super().__init__(message)
        self._expected = expected
        self._actual = actual

    @property
    def expected(self) -> Any:
        return self._expected

    @property
    def actual(self) -> Any:
        return self._actual


class OrderingError(ContractAssertionError):
    """A sibling path appears after the path that must follow it."""

    kind = FailureKind.ORDERING

    def __init__(self, sibling: str, sibling_index: int, target: str, target_index: int) -> None:
        super().__init__(
            f"{sibling} (index {sibling_index}) should be before {target} (index {target_index})"
        )
        self.sibling = sibling
        self.sibling_index = sibling_index
        self.target = target
        self.target_index = target_index

    @property
    def expected(self) -> Any:
        return f"index < {self.target_index}"

    @property
    def actual(self) -> Any:
        return self.sibling_index
