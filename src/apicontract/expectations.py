"""Declarative expectation suites.

A suite is a YAML file describing what a contract document must contain. It is
validated with strict models so a typo in an expectation key fails loudly
instead of silently checking nothing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from apicontract.document.loader import format_validation_error, read_contract_mapping
from apicontract.document.models import HTTP_METHODS, stringify_status_keys
from apicontract.errors import ContractLoadError

SUITE_CONTRACT_VERSION = "1.0"


class StrictBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ResponseExpectation(StrictBaseModel):
    description: str | None = None
    description_contains: str | None = None
    media_type: str = "application/json"
    schema_ref: str | None = None
    no_body: bool = False

    @model_validator(mode="after")
    def _body_rules_agree(self) -> ResponseExpectation:
        if self.no_body and self.schema_ref is not None:
            raise ValueError("no_body and schema_ref are mutually exclusive")
        return self


class RequestBodyExpectation(StrictBaseModel):
    required: bool | None = None
    media_type: str = "application/json"
    schema_ref: str | None = None


class OperationExpectation(StrictBaseModel):
    summary: str | None = None
    description_contains: list[str] = Field(default_factory=list)
    description_contains_any: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    request_body: RequestBodyExpectation | None = None
    responses: dict[str, ResponseExpectation] = Field(default_factory=dict)

    @field_validator("responses", mode="before")
    @classmethod
    def _status_codes_as_strings(cls, value: Any) -> Any:
        return stringify_status_keys(value)


def _check_methods(methods: list[str]) -> list[str]:
    normalized = [method.lower() for method in methods]
    unknown = sorted(set(normalized) - set(HTTP_METHODS))
    if unknown:
        raise ValueError(f"unknown HTTP methods: {unknown}")
    return normalized


class PathExpectation(StrictBaseModel):
    path: str
    exists: bool = True
    parameter_refs: list[str] = Field(default_factory=list)
    methods_absent: list[str] = Field(default_factory=list)
    placed_after_siblings: bool = False
    sibling_prefix: str | None = None
    operations: dict[str, OperationExpectation] = Field(default_factory=dict)

    @field_validator("methods_absent")
    @classmethod
    def _known_absent_methods(cls, value: list[str]) -> list[str]:
        return _check_methods(value)

    @field_validator("operations")
    @classmethod
    def _known_operation_methods(
        cls, value: dict[str, OperationExpectation]
    ) -> dict[str, OperationExpectation]:
        _check_methods(list(value))
        return {method.lower(): expectation for method, expectation in value.items()}

    @model_validator(mode="after")
    def _absent_and_expected_disjoint(self) -> PathExpectation:
        clash = sorted(set(self.methods_absent) & set(self.operations))
        if clash:
            raise ValueError(f"methods both expected and forbidden: {clash}")
        if not self.exists and (self.operations or self.parameter_refs):
            raise ValueError("a path expected to be absent cannot carry other expectations")
        return self


class SchemaExpectation(StrictBaseModel):
    exists: bool = True
    required: list[str] = Field(default_factory=list)
    property_types: dict[str, str] = Field(default_factory=dict)
    property_formats: dict[str, str] = Field(default_factory=dict)
    enums: dict[str, list[Any]] = Field(default_factory=dict)
    present: list[str] = Field(default_factory=list)
    absent: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _present_and_absent_disjoint(self) -> SchemaExpectation:
        expected = set(self.present) | set(self.required) | set(self.property_types) | set(
            self.enums
        )
        clash = sorted(expected & set(self.absent))
        if clash:
            raise ValueError(f"properties both expected and forbidden: {clash}")
        return self


class ExpectationSuite(StrictBaseModel):
    contract_suite_version: str = SUITE_CONTRACT_VERSION
    name: str | None = None
    description: str | None = None
    paths: list[PathExpectation] = Field(default_factory=list)
    schemas: dict[str, SchemaExpectation] = Field(default_factory=dict)

    @field_validator("contract_suite_version")
    @classmethod
    def _validate_contract_version(cls, value: str) -> str:
        if value != SUITE_CONTRACT_VERSION:
            raise ValueError(
                "contract_suite_version must match the supported version "
                f"{SUITE_CONTRACT_VERSION}"
            )
        return value


def parse_expectation_suite(data: dict[str, Any], *, source: str = "<memory>") -> ExpectationSuite:
    try:
        suite = ExpectationSuite.model_validate(data)
    except ValidationError as exc:
        raise ContractLoadError(
            format_validation_error(
                source, exc, hint="fix the expectation suite keys and values."
            )
        ) from exc
    if suite.name is None:
        suite = suite.model_copy(update={"name": Path(source).stem})
    return suite


def load_expectation_suite(path: Path | str) -> ExpectationSuite:
    path = Path(path)
    return parse_expectation_suite(read_contract_mapping(path), source=str(path))


def load_expectation_suites(path: Path | str) -> list[ExpectationSuite]:
    """Load one suite file, or every ``*.yaml``/``*.yml`` suite in a directory."""
    path = Path(path)
    if path.is_dir():
        files = sorted(
            candidate
            for candidate in path.iterdir()
            if candidate.is_file() and candidate.suffix in {".yaml", ".yml"}
        )
        if not files:
            raise ContractLoadError(
                f"No expectation suites found in {path}. Remediation: add a *.yaml suite."
            )
        return [load_expectation_suite(candidate) for candidate in files]
    return [load_expectation_suite(path)]
