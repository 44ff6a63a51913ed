"""Document-wide invariants checked on every run."""

from __future__ import annotations

import re
from collections import defaultdict

from apicontract.document.models import ContractDocument, Schema
from apicontract.document.resolver import iter_references, iter_schemas, resolve_reference
from apicontract.errors import MismatchError
from apicontract.report import AssertionResult, evaluate, passed

_STATUS_RE = re.compile(r"^(?:[1-5][0-9]{2}|[1-5]XX|default)$")


def is_valid_status_code(key: str) -> bool:
    return _STATUS_RE.match(key) is not None


def check_references(document: ContractDocument) -> list[AssertionResult]:
    """One result per ``$ref``: the target must exist."""
    results = []
    for location, ref in iter_references(document):

        def check(ref: str = ref) -> str:
            resolve_reference(document, ref)
            return f"{ref} resolves"

        results.append(evaluate(f"invariant.ref.{ref}", location, check))
    return results


def check_status_codes(document: ContractDocument) -> list[AssertionResult]:
    results = []
    for path, item in document.paths.items():
        for method, operation in item.operations().items():
            scope = f"{method.upper()} {path}"
            invalid = [key for key in operation.responses if not is_valid_status_code(key)]
            if invalid:

                def fail(invalid: list[str] = invalid) -> str:
                    raise MismatchError(
                        f"Invalid HTTP status codes: {invalid}",
                        expected="100-599, 1XX-5XX or default",
                        actual=invalid,
                    )

                results.append(evaluate("invariant.status_codes", scope, fail))
            else:
                results.append(
                    passed("invariant.status_codes", scope, "all status codes are valid")
                )
    return results


def _schema_required_subset(location: str, schema: Schema) -> str:
    undeclared = [prop for prop in schema.required if prop not in schema.properties]
    if undeclared:
        raise MismatchError(
            f"{location} lists undeclared required properties: {undeclared}",
            expected=sorted(schema.properties),
            actual=schema.required,
        )
    return f"{location} required properties are declared"


def check_required_declared(document: ContractDocument) -> list[AssertionResult]:
    """``required`` may only name declared properties.

    Every inline schema is checked at its own pointer, nested property and
    media-type schemas included. Composed schemas and schemas without
    ``properties`` are skipped since their properties may come from elsewhere.
    """
    results = []
    for location, schema in iter_schemas(document):
        if schema.is_composed or not schema.properties:
            continue
        results.append(
            evaluate(
                "invariant.required_declared",
                location,
                lambda location=location, schema=schema: _schema_required_subset(
                    location, schema
                ),
            )
        )
    return results


def check_unique_operation_ids(document: ContractDocument) -> list[AssertionResult]:
    seen: dict[str, list[str]] = defaultdict(list)
    for path, item in document.paths.items():
        for method, operation in item.operations().items():
            if operation.operation_id is not None:
                seen[operation.operation_id].append(f"{method.upper()} {path}")

    results = []
    for operation_id, owners in seen.items():
        if len(owners) > 1:

            def fail(operation_id: str = operation_id, owners: list[str] = owners) -> str:
                raise MismatchError(
                    f"Duplicate operationId {operation_id}: {owners}",
                    expected=1,
                    actual=len(owners),
                )

            results.append(evaluate(f"invariant.operation_id.{operation_id}", owners[0], fail))
    if not results:
        results.append(passed("invariant.operation_id", "#/paths", "operationIds are unique"))
    return results


def check_document_invariants(document: ContractDocument) -> list[AssertionResult]:
    return [
        *check_references(document),
        *check_status_codes(document),
        *check_required_declared(document),
        *check_unique_operation_ids(document),
    ]
