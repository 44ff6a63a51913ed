"""Assertion engines over a loaded contract document."""

from apicontract.checks.invariants import check_document_invariants
from apicontract.checks.operation import (
    check_operation,
    check_path,
    check_request_body,
    check_response,
)
from apicontract.checks.ordering import check_path_order, sibling_paths, sibling_prefix
from apicontract.checks.schema import check_schema, enum_values_match

__all__ = [
    "check_document_invariants",
    "check_operation",
    "check_path",
    "check_path_order",
    "check_request_body",
    "check_response",
    "check_schema",
    "enum_values_match",
    "sibling_paths",
    "sibling_prefix",
]
