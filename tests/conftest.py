"""
Shared pytest fixtures and configuration for apicontract tests.

Most tests build small contract documents in memory or in ``tmp_path`` so that
each one states exactly the shape it exercises.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from apicontract.document.loader import parse_contract_document
from apicontract.document.models import ContractDocument


def pytest_configure(config: Any) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks property-based tests")
    config.addinivalue_line(
        "markers", "contract: marks tests that check the repository's contract document"
    )
    config.addinivalue_line("markers", "e2e: marks end-to-end tests")


def _minimal_document() -> dict[str, Any]:
    return {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1.0.0"},
        "paths": {
            "/v2/node/{nodeID}/agent": {
                "parameters": [{"$ref": "#/components/parameters/nodeID"}],
                "get": {
                    "summary": "Get agent",
                    "operationId": "getAgent",
                    "responses": {"200": {"description": "OK"}},
                },
            },
            "/v2/node/{nodeID}/lifecycle-state": {
                "parameters": [{"$ref": "#/components/parameters/nodeID"}],
                "put": {
                    "summary": "Update the lifecycle state of a specific node",
                    "description": "Update state.\n\n---\nRequires the `node:write` permission.",
                    "operationId": "putLifecycleState",
                    "tags": ["Appliance", "Agent"],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/LifecycleStateRequest"}
                            }
                        },
                    },
                    "responses": {
                        "200": {"description": "OK"},
                        "404": {"description": "Node not found"},
                        "422": {
                            "description": "Validation error",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/ValidationFailed"}
                                }
                            },
                        },
                    },
                },
            },
        },
        "components": {
            "parameters": {
                "nodeID": {
                    "name": "nodeID",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "string"},
                }
            },
            "schemas": {
                "LifecycleStateRequest": {
                    "type": "object",
                    "required": ["lifecycleState"],
                    "properties": {
                        "lifecycleState": {
                            "type": "string",
                            "enum": ["pre-production", "production", "maintenance", "decommissioned"],
                            "example": "production",
                        }
                    },
                },
                "ValidationFailed": {
                    "type": "object",
                    "properties": {"message": {"type": "string"}},
                },
            },
        },
    }


@pytest.fixture
def document_data() -> dict[str, Any]:
    """A small, valid document as a plain mapping; safe to mutate."""
    return copy.deepcopy(_minimal_document())


@pytest.fixture
def make_document() -> Callable[[dict[str, Any]], ContractDocument]:
    def _make(data: dict[str, Any]) -> ContractDocument:
        return parse_contract_document(data, source="test.yaml")

    return _make


@pytest.fixture
def document(document_data: dict[str, Any]) -> ContractDocument:
    return parse_contract_document(document_data, source="test.yaml")


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[..., Path]:
    """Write a mapping (or raw text) to a YAML file under ``tmp_path``."""

    def _write(data: dict[str, Any] | str, name: str = "index.yaml") -> Path:
        path = tmp_path / name
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
