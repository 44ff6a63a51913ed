"""Tests for path, operation, response and request body assertions."""

from __future__ import annotations

from apicontract.checks.operation import (
    check_operation,
    check_path,
    check_request_body,
    check_response,
    operation_scope,
)
from apicontract.errors import FailureKind
from apicontract.expectations import (
    OperationExpectation,
    PathExpectation,
    RequestBodyExpectation,
    ResponseExpectation,
)
from apicontract.report import Outcome

LIFECYCLE = "/v2/node/{nodeID}/lifecycle-state"
AGENT = "/v2/node/{nodeID}/agent"
REQUEST_REF = "#/components/schemas/LifecycleStateRequest"
VALIDATION_REF = "#/components/schemas/ValidationFailed"


def _by_id(results):
    return {result.assertion_id: result for result in results}


def test_operation_scope() -> None:
    assert operation_scope(LIFECYCLE, "put") == f"PUT {LIFECYCLE}"


class TestResponses:
    def test_no_body_response(self, document) -> None:
        results = check_response(
            document, LIFECYCLE, "put", "200", ResponseExpectation(description="OK", no_body=True)
        )
        assert [result.assertion_id for result in results] == [
            "response.200.exists",
            "response.200.description",
            "response.200.no_body",
        ]
        assert all(result.passed for result in results)

    def test_empty_content_is_a_body(self, make_document, document_data) -> None:
        document_data["paths"][LIFECYCLE]["put"]["responses"]["200"]["content"] = {}
        document = make_document(document_data)

        results = check_response(
            document, LIFECYCLE, "put", "200", ResponseExpectation(no_body=True)
        )

        assert results[0].passed
        assert results[1].outcome is Outcome.FAIL
        assert results[1].message == "200 response should NOT have content"

    def test_description_contains_is_case_insensitive(self, document) -> None:
        results = check_response(
            document,
            LIFECYCLE,
            "put",
            "404",
            ResponseExpectation(description_contains="NOT FOUND"),
        )
        assert all(result.passed for result in results)

    def test_description_mismatch(self, document) -> None:
        result = check_response(
            document, LIFECYCLE, "put", "404", ResponseExpectation(description="Missing")
        )[1]
        assert result.kind is FailureKind.MISMATCH
        assert result.expected == "Missing"
        assert result.actual == "Node not found"

    def test_schema_ref(self, document) -> None:
        results = check_response(
            document,
            LIFECYCLE,
            "put",
            "422",
            ResponseExpectation(description_contains="validation", schema_ref=VALIDATION_REF),
        )
        assert all(result.passed for result in results)

    def test_schema_ref_wrong_target(self, document) -> None:
        result = check_response(
            document, LIFECYCLE, "put", "422", ResponseExpectation(schema_ref=REQUEST_REF)
        )[-1]
        assert result.outcome is Outcome.FAIL
        assert result.message == "422 response should reference LifecycleStateRequest schema"
        assert result.actual == VALIDATION_REF

    def test_schema_ref_without_content(self, document) -> None:
        result = check_response(
            document, LIFECYCLE, "put", "404", ResponseExpectation(schema_ref=VALIDATION_REF)
        )[-1]
        assert result.kind is FailureKind.NOT_FOUND
        assert "should have content" in result.message

    def test_schema_ref_other_media_type(self, document) -> None:
        result = check_response(
            document,
            LIFECYCLE,
            "put",
            "422",
            ResponseExpectation(schema_ref=VALIDATION_REF, media_type="application/xml"),
        )[-1]
        assert "application/xml" in result.message

    def test_missing_status_fails_every_check(self, document) -> None:
        results = check_response(
            document,
            LIFECYCLE,
            "put",
            "409",
            ResponseExpectation(description="Conflict", no_body=True),
        )
        assert len(results) == 3
        assert all(result.kind is FailureKind.NOT_FOUND for result in results)
        assert results[0].message == "409 response should exist"

    def test_response_reference_is_followed(self, make_document, document_data) -> None:
        document_data["components"]["responses"] = {"NotFound": {"description": "Node not found"}}
        responses = document_data["paths"][LIFECYCLE]["put"]["responses"]
        responses["404"] = {"$ref": "#/components/responses/NotFound"}
        document = make_document(document_data)

        results = check_response(
            document,
            LIFECYCLE,
            "put",
            "404",
            ResponseExpectation(description="Node not found", no_body=True),
        )
        assert all(result.passed for result in results)

    def test_missing_operation(self, document) -> None:
        result = check_response(document, LIFECYCLE, "get", "200", ResponseExpectation())[0]
        assert result.message == f"Path {LIFECYCLE} should have GET operation"


class TestRequestBody:
    def test_required_body_with_schema_ref(self, document) -> None:
        results = check_request_body(
            document,
            LIFECYCLE,
            "put",
            RequestBodyExpectation(required=True, schema_ref=REQUEST_REF),
        )
        assert [result.assertion_id for result in results] == [
            "request_body.exists",
            "request_body.schema_ref",
            "request_body.required",
        ]
        assert all(result.passed for result in results)

    def test_optional_body_fails_required(self, make_document, document_data) -> None:
        del document_data["paths"][LIFECYCLE]["put"]["requestBody"]["required"]
        document = make_document(document_data)

        result = check_request_body(
            document, LIFECYCLE, "put", RequestBodyExpectation(required=True)
        )[-1]
        assert result.outcome is Outcome.FAIL
        assert result.expected is True
        assert result.actual is False

    def test_missing_body(self, document) -> None:
        results = check_request_body(
            document, AGENT, "get", RequestBodyExpectation(schema_ref=REQUEST_REF)
        )
        assert [result.outcome for result in results] == [Outcome.FAIL, Outcome.FAIL]
        assert results[0].message == "GET operation should have requestBody"

    def test_request_body_reference_is_followed(self, make_document, document_data) -> None:
        put = document_data["paths"][LIFECYCLE]["put"]
        document_data["components"]["requestBodies"] = {"Lifecycle": put["requestBody"]}
        put["requestBody"] = {"$ref": "#/components/requestBodies/Lifecycle"}
        document = make_document(document_data)

        results = check_request_body(
            document,
            LIFECYCLE,
            "put",
            RequestBodyExpectation(required=True, schema_ref=REQUEST_REF),
        )
        assert all(result.passed for result in results)


class TestOperation:
    def test_lifecycle_operation(self, document) -> None:
        expectation = OperationExpectation(
            summary="Update the lifecycle state of a specific node",
            description_contains=["---"],
            description_contains_any=["permission", "Requires"],
            tags=["Appliance", "Agent"],
        )

        results = check_operation(document, LIFECYCLE, "PUT", expectation)

        assert all(result.passed for result in results)
        assert {result.scope for result in results} == {f"PUT {LIFECYCLE}"}
        assert "operation.tag.Agent" in _by_id(results)

    def test_description_predicates_fail_independently(self, document) -> None:
        expectation = OperationExpectation(
            description_contains=["---", "Deprecated"],
            description_contains_any=["admin", "root"],
        )

        results = _by_id(check_operation(document, LIFECYCLE, "put", expectation))

        assert results["operation.description_contains.---"].passed
        assert not results["operation.description_contains.Deprecated"].passed
        assert not results["operation.description_contains_any"].passed

    def test_missing_description(self, document) -> None:
        results = check_operation(
            document, AGENT, "get", OperationExpectation(description_contains=["---"])
        )
        assert results[-1].kind is FailureKind.NOT_FOUND
        assert results[-1].message == "GET should have description"

    def test_missing_tag(self, document) -> None:
        result = check_operation(
            document, LIFECYCLE, "put", OperationExpectation(tags=["Node"])
        )[-1]
        assert result.message == "Tags should include Node"
        assert result.actual == ["Appliance", "Agent"]

    def test_summary_mismatch(self, document) -> None:
        result = check_operation(document, AGENT, "get", OperationExpectation(summary="Agent"))[-1]
        assert result.expected == "Agent"
        assert result.actual == "Get agent"

    def test_nested_expectations_all_evaluated(self, document) -> None:
        expectation = OperationExpectation(
            request_body=RequestBodyExpectation(required=True, schema_ref=REQUEST_REF),
            responses={
                200: ResponseExpectation(description="OK", no_body=True),
                "422": ResponseExpectation(schema_ref=VALIDATION_REF),
            },
        )

        results = check_operation(document, LIFECYCLE, "put", expectation)

        assert len(results) == 1 + 3 + 3 + 2
        assert all(result.passed for result in results)

    def test_missing_operation_cascades(self, document) -> None:
        expectation = OperationExpectation(summary="x", tags=["a", "b"])
        results = check_operation(document, LIFECYCLE, "post", expectation)
        assert len(results) == 4
        assert not any(result.passed for result in results)


class TestPath:
    def test_lifecycle_path(self, document) -> None:
        expectation = PathExpectation(
            path=LIFECYCLE,
            parameter_refs=["#/components/parameters/nodeID"],
            methods_absent=["GET"],
            placed_after_siblings=True,
        )

        results = _by_id(check_path(document, expectation))

        assert list(results) == [
            "path.exists",
            "path.parameter_ref.#/components/parameters/nodeID",
            "path.method_absent.get",
            "path.order",
        ]
        assert all(result.passed for result in results.values())

    def test_missing_path(self, document) -> None:
        results = check_path(
            document,
            PathExpectation(
                path="/v2/missing", parameter_refs=["#/x"], placed_after_siblings=True
            ),
        )
        assert len(results) == 3
        assert all(result.kind is FailureKind.NOT_FOUND for result in results)
        assert results[0].message == "Path /v2/missing should exist in paths"

    def test_parameter_ref_missing(self, document) -> None:
        result = check_path(
            document,
            PathExpectation(path=LIFECYCLE, parameter_refs=["#/components/parameters/taskID"]),
        )[-1]
        assert result.message == "Should reference taskID parameter"

    def test_inline_parameter_does_not_count_as_ref(self, make_document, document_data) -> None:
        document_data["paths"][LIFECYCLE]["parameters"] = [
            {"name": "nodeID", "in": "path", "required": True, "schema": {"type": "string"}}
        ]
        document = make_document(document_data)

        result = check_path(
            document,
            PathExpectation(path=LIFECYCLE, parameter_refs=["#/components/parameters/nodeID"]),
        )[-1]
        assert result.outcome is Outcome.FAIL

    def test_method_present_when_expected_absent(self, document) -> None:
        result = check_path(document, PathExpectation(path=LIFECYCLE, methods_absent=["put"]))[-1]
        assert result.message == "Path should NOT have PUT operation"

    def test_each_ordering_violation_is_reported(self, make_document, document_data) -> None:
        paths = document_data["paths"]
        document_data["paths"] = {
            LIFECYCLE: paths[LIFECYCLE],
            AGENT: paths[AGENT],
            "/v2/node/{nodeID}/labels": {},
        }
        document = make_document(document_data)

        results = check_path(
            document, PathExpectation(path=LIFECYCLE, placed_after_siblings=True)
        )
        order = [result for result in results if result.assertion_id == "path.order"]

        assert len(order) == 2
        assert all(result.kind is FailureKind.ORDERING for result in order)
        assert order[0].message == (
            f"{AGENT} (index 1) should be before {LIFECYCLE} (index 0)"
        )

    def test_path_expected_absent(self, document) -> None:
        assert check_path(document, PathExpectation(path="/v2/old", exists=False))[0].passed
        result = check_path(document, PathExpectation(path=LIFECYCLE, exists=False))[0]
        assert result.assertion_id == "path.absent"
        assert not result.passed
