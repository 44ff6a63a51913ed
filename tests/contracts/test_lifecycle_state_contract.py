"""Contract tests for the repository's index.yaml.

Pins the lifecycle-state endpoint and the LifecycleStateRequest schema to what
the backend implements: a PUT handler answering OK with no body, 404 for an
unknown node and 422 for a state outside the accepted values.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from apicontract.checks.invariants import check_document_invariants
from apicontract.checks.ordering import check_path_order
from apicontract.document.loader import load_contract_document
from apicontract.document.models import Reference
from apicontract.document.resolver import get_operation, get_schema, resolve_path
from apicontract.expectations import load_expectation_suite, load_expectation_suites
from apicontract.validator import ContractValidator, validate_contract

pytestmark = pytest.mark.contract

REPO_ROOT = Path(__file__).resolve().parents[2]
INDEX_PATH = REPO_ROOT / "index.yaml"
SUITE_DIR = REPO_ROOT / "contracts"
FIXTURES_DIR = REPO_ROOT / "tests" / "fixtures"
LIFECYCLE_PATH = "/v2/node/{nodeID}/lifecycle-state"

BACKEND_STATES = ["pre-production", "production", "maintenance", "decommissioned"]


@pytest.fixture(scope="module")
def index():
    return load_contract_document(INDEX_PATH)


@pytest.fixture(scope="module")
def put(index):
    return get_operation(resolve_path(index, LIFECYCLE_PATH), "put")


class TestLifecycleStatePath:
    def test_path_exists(self, index) -> None:
        assert resolve_path(index, LIFECYCLE_PATH) is not None

    def test_uses_shared_node_id_parameter(self, index) -> None:
        parameters = resolve_path(index, LIFECYCLE_PATH).parameters
        assert any(
            isinstance(item, Reference) and item.ref == "#/components/parameters/nodeID"
            for item in parameters
        )

    def test_has_no_get_operation(self, index) -> None:
        assert get_operation(resolve_path(index, LIFECYCLE_PATH), "get") is None

    def test_put_operation(self, put) -> None:
        assert put is not None
        assert put.summary == "Update the lifecycle state of a specific node"
        assert set(put.tags) >= {"Appliance", "Agent"}

    def test_put_description_documents_permissions(self, put) -> None:
        assert "---" in put.description
        assert "permission" in put.description or "Requires" in put.description

    def test_placed_after_node_siblings(self, index) -> None:
        assert check_path_order(index, LIFECYCLE_PATH) == []


class TestLifecycleStateRequestSchema:
    def test_schema(self, index) -> None:
        schema = get_schema(index, "LifecycleStateRequest")
        prop = schema.properties["lifecycleState"]

        assert "lifecycleState" in schema.required
        assert prop.type == "string"
        assert sorted(prop.enum) == sorted(BACKEND_STATES)
        assert prop.has_example

    @pytest.mark.parametrize("name", ["phase", "lastTransition", "message"])
    def test_fields_not_in_backend_are_absent(self, index, name: str) -> None:
        assert name not in get_schema(index, "LifecycleStateRequest").properties


class TestPutResponsesAndBody:
    def test_ok_has_no_body(self, put) -> None:
        response = put.responses["200"]
        assert response.description == "OK"
        assert response.content is None

    def test_not_found(self, put) -> None:
        assert "not found" in put.responses["404"].description.lower()

    def test_validation_error_references_validation_failed(self, put) -> None:
        response = put.responses["422"]
        assert "validation" in response.description.lower()
        schema = response.content["application/json"].schema_
        assert schema.ref == "#/components/schemas/ValidationFailed"

    def test_request_body(self, put) -> None:
        body = put.request_body
        assert body.required is True
        schema = body.content["application/json"].schema_
        assert schema.ref == "#/components/schemas/LifecycleStateRequest"


class TestRepositorySuites:
    def test_index_satisfies_every_invariant(self, index) -> None:
        failures = [result for result in check_document_invariants(index) if not result.passed]
        assert failures == []

    def test_index_satisfies_every_suite(self) -> None:
        report = validate_contract(INDEX_PATH, [SUITE_DIR])
        assert report.passed, report.render_text()
        assert {result.assertion_id.split(":")[0] for result in report.results} >= {
            "lifecycle-state",
            "nodes",
        }

    def test_suites_load(self) -> None:
        names = [suite.name for suite in load_expectation_suites(SUITE_DIR)]
        assert names == ["lifecycle-state", "nodes"]


class TestSupersededGetVariant:
    """The earlier read-only definition cannot satisfy the PUT contract."""

    @pytest.fixture(scope="class")
    def report(self):
        document = load_contract_document(FIXTURES_DIR / "lifecycle-state-get.yaml")
        suite = load_expectation_suite(SUITE_DIR / "lifecycle-state.yaml")
        return ContractValidator(document).validate([suite])

    def test_fails(self, report) -> None:
        assert not report.passed

    def test_get_and_put_are_mutually_exclusive(self, report) -> None:
        failed = {result.assertion_id for result in report.failures}
        assert "lifecycle-state:path.method_absent.get" in failed
        assert "lifecycle-state:operation.exists" in failed
        assert "lifecycle-state:schema.LifecycleStateRequest.exists" in failed

    def test_fixture_is_structurally_valid(self, report) -> None:
        invariant_failures = [
            result for result in report.failures if result.assertion_id.startswith("invariant.")
        ]
        assert invariant_failures == []
