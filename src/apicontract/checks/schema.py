"""Schema assertion engine.

Each entry of a :class:`SchemaExpectation` becomes its own assertion, so a
missing schema or property yields one failure per expectation rather than
stopping at the first.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from apicontract.document.models import ContractDocument, Reference, Schema
from apicontract.document.resolver import escape_pointer_token, get_schema, resolve_schema
from apicontract.errors import MismatchError, NotFoundError
from apicontract.expectations import SchemaExpectation
from apicontract.report import AssertionResult, evaluate


def schema_scope(name: str) -> str:
    return f"#/components/schemas/{name}"


def _enum_key(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def enum_values_match(actual: list[Any], expected: list[Any]) -> bool:
    """Order-independent enum comparison."""
    return {_enum_key(value) for value in actual} == {_enum_key(value) for value in expected}


def _sorted_values(values: list[Any]) -> list[Any]:
    return sorted(values, key=_enum_key)


def _all_of_members(
    document: ContractDocument, schema: Schema, seen: tuple[str, ...]
) -> Iterator[tuple[Schema, tuple[str, ...]]]:
    for member in schema.all_of or []:
        if isinstance(member, Reference):
            if member.ref in seen:
                chain = " -> ".join([*seen, member.ref])
                raise NotFoundError(f"Reference cycle: {chain}", key=member.ref)
            yield resolve_schema(document, member), (*seen, member.ref)
        else:
            yield member, seen


def collect_properties(
    document: ContractDocument, schema: Schema, seen: tuple[str, ...] = ()
) -> dict[str, Schema | Reference]:
    """Own properties plus those contributed by ``allOf`` members.

    ``seen`` holds the refs already being expanded; meeting one again raises
    :class:`NotFoundError` instead of recursing forever.
    """
    properties: dict[str, Schema | Reference] = {}
    for member, member_seen in _all_of_members(document, schema, seen):
        properties.update(collect_properties(document, member, member_seen))
    properties.update(schema.properties)
    return properties


def collect_required(
    document: ContractDocument, schema: Schema, seen: tuple[str, ...] = ()
) -> list[str]:
    required: list[str] = []
    for member, member_seen in _all_of_members(document, schema, seen):
        required.extend(collect_required(document, member, member_seen))
    required.extend(schema.required)
    return required


class _SchemaView:
    """Lazily resolved schema; every accessor raises instead of returning None."""

    def __init__(self, document: ContractDocument, name: str) -> None:
        self.document = document
        self.name = name

    def schema(self) -> Schema:
        found = get_schema(self.document, self.name)
        if found is None:
            raise NotFoundError(f"{self.name} schema should exist", key=self.name)
        return resolve_schema(self.document, found)

    def properties(self) -> dict[str, Schema | Reference]:
        origin = schema_scope(escape_pointer_token(self.name))
        return collect_properties(self.document, self.schema(), (origin,))

    def get_property(self, prop: str) -> Schema:
        properties = self.properties()
        if prop not in properties:
            raise NotFoundError(
                f"{prop} property should exist in {self.name}", key=f"{self.name}.{prop}"
            )
        return resolve_schema(self.document, properties[prop])


def check_schema(
    document: ContractDocument, name: str, expectation: SchemaExpectation
) -> list[AssertionResult]:
    scope = schema_scope(name)
    view = _SchemaView(document, name)
    results: list[AssertionResult] = []

    if not expectation.exists:

        def check_absent() -> str:
            if get_schema(document, name) is not None:
                raise MismatchError(
                    f"{name} schema should NOT exist", expected="absent", actual="present"
                )
            return f"{name} is absent"

        return [evaluate(f"schema.{name}.absent", scope, check_absent)]

    def check_exists() -> str:
        view.schema()
        return f"{name} exists"

    results.append(evaluate(f"schema.{name}.exists", scope, check_exists))

    for prop in expectation.required:

        def check_required(prop: str = prop) -> str:
            origin = schema_scope(escape_pointer_token(name))
            required = collect_required(document, view.schema(), (origin,))
            if not required:
                raise MismatchError(
                    f"{name} should have a required array", expected=[prop], actual=[]
                )
            if prop not in required:
                raise MismatchError(
                    f"{prop} should be required in {name}", expected=prop, actual=required
                )
            return f"{prop} is required"

        results.append(evaluate(f"schema.{name}.required.{prop}", scope, check_required))

    for prop, expected_type in expectation.property_types.items():

        def check_type(prop: str = prop, expected_type: str = expected_type) -> str:
            actual = view.get_property(prop).type
            if actual != expected_type:
                raise MismatchError(
                    f"{prop} should be type {expected_type}", expected=expected_type, actual=actual
                )
            return f"{prop} is type {expected_type}"

        results.append(evaluate(f"schema.{name}.type.{prop}", scope, check_type))

    for prop, expected_format in expectation.property_formats.items():

        def check_format(prop: str = prop, expected_format: str = expected_format) -> str:
            actual = view.get_property(prop).format
            if actual != expected_format:
                raise MismatchError(
                    f"{prop} should have format {expected_format}",
                    expected=expected_format,
                    actual=actual,
                )
            return f"{prop} has format {expected_format}"

        results.append(evaluate(f"schema.{name}.format.{prop}", scope, check_format))

    for prop, expected_values in expectation.enums.items():

        def check_enum(prop: str = prop, expected_values: list[Any] = expected_values) -> str:
            actual = view.get_property(prop).enum
            if actual is None:
                raise NotFoundError(f"{prop} should have enum", key=f"{name}.{prop}.enum")
            if len({_enum_key(value) for value in actual}) != len(actual):
                raise MismatchError(
                    f"{prop} enum contains duplicate values",
                    expected=_sorted_values(expected_values),
                    actual=actual,
                )
            if not enum_values_match(actual, expected_values):
                raise MismatchError(
                    f"{prop} enum should match {_sorted_values(expected_values)}",
                    expected=_sorted_values(expected_values),
                    actual=_sorted_values(actual),
                )
            return f"{prop} enum matches"

        results.append(evaluate(f"schema.{name}.enum.{prop}", scope, check_enum))

    for prop in expectation.present:

        def check_present(prop: str = prop) -> str:
            view.get_property(prop)
            return f"{prop} is present"

        results.append(evaluate(f"schema.{name}.present.{prop}", scope, check_present))

    for prop in expectation.absent:

        def check_absent_property(prop: str = prop) -> str:
            # key presence decides, an empty declaration still counts
            if prop in view.properties():
                raise MismatchError(
                    f"{prop} property should NOT exist in {name}",
                    expected="absent",
                    actual="present",
                )
            return f"{prop} is absent"

        results.append(evaluate(f"schema.{name}.absent.{prop}", scope, check_absent_property))

    for prop in expectation.examples:

        def check_example(prop: str = prop) -> str:
            if not view.get_property(prop).has_example:
                raise NotFoundError(
                    f"{prop} should have example value", key=f"{name}.{prop}.example"
                )
            return f"{prop} has an example"

        results.append(evaluate(f"schema.{name}.example.{prop}", scope, check_example))

    return results
