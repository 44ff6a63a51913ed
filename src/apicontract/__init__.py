"""
apicontract - contract validation for OpenAPI-style documents.

Loads a contract document, locates paths, operations and schemas, runs
declarative expectations against them and reports every failure at once.

Public API:
-----------
- load_contract_document: Parse a YAML/JSON document into a typed tree
- ContractValidator: Run invariants and expectation suites over a document
- validate_contract: Load a document and suites from disk and validate
- ValidationReport: Aggregated pass/fail results

Quick Start:
-----------
>>> from apicontract import validate_contract
>>> report = validate_contract("index.yaml", ["contracts"])
>>> report.passed
True
"""

from apicontract.document.loader import load_contract_document, parse_contract_document
from apicontract.document.models import ContractDocument
from apicontract.errors import (
    ContractAssertionError,
    ContractError,
    ContractLoadError,
    FailureKind,
    MismatchError,
    NotFoundError,
    OrderingError,
)
from apicontract.expectations import ExpectationSuite, load_expectation_suite
from apicontract.report import AssertionResult, Outcome, ValidationReport
from apicontract.validator import ContractValidator, validate_contract

__version__ = "0.3.0"

__all__ = [
    "AssertionResult",
    "ContractAssertionError",
    "ContractDocument",
    "ContractError",
    "ContractLoadError",
    "ContractValidator",
    "ExpectationSuite",
    "FailureKind",
    "MismatchError",
    "NotFoundError",
    "OrderingError",
    "Outcome",
    "ValidationReport",
    "__version__",
    "load_contract_document",
    "load_expectation_suite",
    "parse_contract_document",
    "validate_contract",
]
