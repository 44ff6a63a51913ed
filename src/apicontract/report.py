"""Assertion results and the aggregated validation report."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from apicontract.errors import ContractAssertionError, FailureKind


class Outcome(str, Enum):
    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class AssertionResult:
    assertion_id: str
    scope: str
    outcome: Outcome
    message: str
    kind: FailureKind | None = None
    expected: Any = None
    actual: Any = None

    @property
    def passed(self) -> bool:
        return self.outcome is Outcome.PASS

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "assertion_id": self.assertion_id,
            "scope": self.scope,
            "outcome": self.outcome.value,
            "message": self.message,
        }
        if self.kind is not None:
            data["kind"] = self.kind.value
        if self.expected is not None or self.actual is not None:
            data["expected"] = self.expected
            data["actual"] = self.actual
        return data


def passed(assertion_id: str, scope: str, message: str) -> AssertionResult:
    return AssertionResult(assertion_id, scope, Outcome.PASS, message)


def failed(assertion_id: str, scope: str, exc: ContractAssertionError) -> AssertionResult:
    return AssertionResult(
        assertion_id,
        scope,
        Outcome.FAIL,
        exc.message,
        kind=exc.kind,
        expected=exc.expected,
        actual=exc.actual,
    )


def evaluate(
    assertion_id: str, scope: str, check: Callable[[], str | None]
) -> AssertionResult:
    """Run one assertion in isolation.

    ``check`` returns an optional success message and raises a
    :class:`ContractAssertionError` to fail. Any other exception propagates.
    """
    try:
        message = check()
    except ContractAssertionError as exc:
        return failed(assertion_id, scope, exc)
    return passed(assertion_id, scope, message or "ok")


@dataclass
class ValidationReport:
    document: str
    document_hash: str = ""
    results: list[AssertionResult] = field(default_factory=list)

    def extend(self, results: list[AssertionResult]) -> None:
        self.results.extend(results)

    @property
    def failures(self) -> list[AssertionResult]:
        return [result for result in self.results if not result.passed]

    @property
    def passed(self) -> bool:
        return not self.failures

    def summary(self) -> dict[str, int]:
        failures = len(self.failures)
        return {
            "total": len(self.results),
            "passed": len(self.results) - failures,
            "failed": failures,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "document": self.document,
            "document_hash": self.document_hash,
            "passed": self.passed,
            "summary": self.summary(),
            "results": [result.to_dict() for result in self.results],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    def render_text(self, *, verbose: bool = False) -> str:
        lines = []
        shown = self.results if verbose else self.failures
        for result in shown:
            marker = "PASS" if result.passed else "FAIL"
            lines.append(f"[{marker}] {result.assertion_id} ({result.scope}): {result.message}")
        counts = self.summary()
        status = "passed" if self.passed else "failed"
        lines.append(
            f"Contract validation {status} for {self.document}: "
            f"{counts['passed']}/{counts['total']} assertions passed"
        )
        return "\n".join(lines)

    def render_markdown(self) -> str:
        lines = []
        if self.failures:
            lines.append("## ❌ API contract check failed")
            lines.append("")
            lines.append(f"Failed assertions in `{self.document}`:")
            lines.append("")
            for result in self.failures:
                lines.append(f"- `{result.assertion_id}` ({result.scope}): {result.message}")
        else:
            lines.append("## ✅ API contract check passed")
            lines.append("")
            lines.append(f"All {len(self.results)} assertions passed for `{self.document}`.")
        return "\n".join(lines) + "\n"
