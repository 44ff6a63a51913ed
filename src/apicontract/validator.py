"""Contract validation run: load, check, aggregate.

Usage:
    from apicontract.validator import validate_contract

    report = validate_contract("index.yaml", ["contracts"])
    if not report.passed:
        print(report.render_text())
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from apicontract.checks.invariants import check_document_invariants
from apicontract.checks.operation import check_path
from apicontract.checks.schema import check_schema
from apicontract.document.loader import load_contract_document
from apicontract.document.models import ContractDocument
from apicontract.expectations import ExpectationSuite, load_expectation_suites
from apicontract.report import AssertionResult, ValidationReport

logger = logging.getLogger(__name__)


def _qualify(suite_name: str | None, results: list[AssertionResult]) -> list[AssertionResult]:
    if not suite_name:
        return results
    return [
        AssertionResult(
            f"{suite_name}:{result.assertion_id}",
            result.scope,
            result.outcome,
            result.message,
            kind=result.kind,
            expected=result.expected,
            actual=result.actual,
        )
        for result in results
    ]


class ContractValidator:
    """Runs document invariants and expectation suites against one document.

    The document is never mutated; every assertion is evaluated independently
    and failures are collected rather than raised.
    """

    def __init__(self, document: ContractDocument, *, check_invariants: bool = True) -> None:
        self.document = document
        self.check_invariants = check_invariants

    def run_suite(self, suite: ExpectationSuite) -> list[AssertionResult]:
        results: list[AssertionResult] = []
        for path_expectation in suite.paths:
            results.extend(check_path(self.document, path_expectation))
        for name, schema_expectation in suite.schemas.items():
            results.extend(check_schema(self.document, name, schema_expectation))
        return _qualify(suite.name, results)

    def validate(self, suites: Iterable[ExpectationSuite] = ()) -> ValidationReport:
        report = ValidationReport(
            document=self.document.source, document_hash=self.document.document_hash
        )
        if self.check_invariants:
            report.extend(check_document_invariants(self.document))
        for suite in suites:
            report.extend(self.run_suite(suite))

        for failure in report.failures:
            logger.warning(
                "Contract assertion failed: %s",
                failure.message,
                extra={
                    "event_type": "assertion_failed",
                    "assertion_id": failure.assertion_id,
                    "scope": failure.scope,
                    "kind": failure.kind.value if failure.kind else None,
                },
            )
        summary = report.summary()
        logger.info(
            "Contract validation finished: %d/%d passed",
            summary["passed"],
            summary["total"],
            extra={"event_type": "validation_finished", "metrics": summary},
        )
        return report


def validate_contract(
    document_path: Path | str,
    suite_paths: Iterable[Path | str] = (),
    *,
    check_invariants: bool = True,
) -> ValidationReport:
    """Load a document and suites, then validate.

    Raises:
        ContractLoadError: If the document or any suite cannot be loaded. No
            assertion runs in that case.
    """
    document = load_contract_document(document_path)
    suites: list[ExpectationSuite] = []
    for suite_path in suite_paths:
        suites.extend(load_expectation_suites(suite_path))
    return ContractValidator(document, check_invariants=check_invariants).validate(suites)
