"""Path, operation, response and request body assertions."""

from __future__ import annotations

from apicontract.checks.ordering import check_path_order, sibling_prefix
from apicontract.document.models import (
    ContractDocument,
    MediaType,
    Operation,
    PathItem,
    Reference,
    RequestBody,
    Response,
)
from apicontract.document.resolver import (
    get_operation,
    resolve_path,
    resolve_request_body,
    resolve_response,
)
from apicontract.errors import ContractAssertionError, MismatchError, NotFoundError
from apicontract.expectations import (
    OperationExpectation,
    PathExpectation,
    RequestBodyExpectation,
    ResponseExpectation,
)
from apicontract.report import AssertionResult, evaluate, failed, passed


def operation_scope(path: str, method: str) -> str:
    return f"{method.upper()} {path}"


def _path_item(document: ContractDocument, path: str) -> PathItem:
    item = resolve_path(document, path)
    if item is None:
        raise NotFoundError(f"Path {path} should exist in paths", key=path)
    return item


def _operation(document: ContractDocument, path: str, method: str) -> Operation:
    operation = get_operation(_path_item(document, path), method)
    if operation is None:
        raise NotFoundError(
            f"Path {path} should have {method.upper()} operation",
            key=operation_scope(path, method),
        )
    return operation


def _schema_ref(content: dict[str, MediaType] | None, media_type: str, owner: str) -> str | None:
    if not content:
        raise NotFoundError(f"{owner} should have content", key=owner)
    if media_type not in content:
        raise NotFoundError(f"{owner} should have {media_type} content type", key=media_type)
    schema = content[media_type].schema_
    return schema.ref if isinstance(schema, Reference) else None


def _check_schema_ref(actual: str | None, expected: str, owner: str) -> str:
    if actual != expected:
        raise MismatchError(
            f"{owner} should reference {expected.rsplit('/', 1)[-1]} schema",
            expected=expected,
            actual=actual,
        )
    return f"{owner} references {expected}"


def check_response(
    document: ContractDocument,
    path: str,
    method: str,
    status: str,
    expectation: ResponseExpectation,
) -> list[AssertionResult]:
    scope = operation_scope(path, method)
    prefix = f"response.{status}"
    owner = f"{status} response"

    def response() -> Response:
        responses = _operation(document, path, method).responses
        if not responses:
            raise NotFoundError(f"{method.upper()} operation should have responses", key=scope)
        if status not in responses:
            raise NotFoundError(f"{status} response should exist", key=status)
        return resolve_response(document, responses[status])

    def check_exists() -> str:
        response()
        return f"{owner} exists"

    results = [evaluate(f"{prefix}.exists", scope, check_exists)]

    if expectation.description is not None:
        expected_description = expectation.description

        def check_description() -> str:
            actual = response().description
            if actual != expected_description:
                raise MismatchError(
                    f'{owner} description should be "{expected_description}"',
                    expected=expected_description,
                    actual=actual,
                )
            return f"{owner} description matches"

        results.append(evaluate(f"{prefix}.description", scope, check_description))

    if expectation.description_contains is not None:
        needle = expectation.description_contains.lower()

        def check_description_contains() -> str:
            description = response().description
            if not description:
                raise NotFoundError(f"{owner} should have a description", key=status)
            if needle not in description.lower():
                raise MismatchError(
                    f'{owner} description should indicate "{needle}"',
                    expected=needle,
                    actual=description,
                )
            return f'{owner} description mentions "{needle}"'

        results.append(
            evaluate(f"{prefix}.description_contains", scope, check_description_contains)
        )

    if expectation.schema_ref is not None:
        expected_ref = expectation.schema_ref

        def check_schema_ref() -> str:
            actual = _schema_ref(response().content, expectation.media_type, owner)
            return _check_schema_ref(actual, expected_ref, owner)

        results.append(evaluate(f"{prefix}.schema_ref", scope, check_schema_ref))

    if expectation.no_body:

        def check_no_body() -> str:
            content = response().content
            # content: {} still declares a body section
            if content is not None:
                raise MismatchError(
                    f"{owner} should NOT have content",
                    expected="no content key",
                    actual=sorted(content),
                )
            return f"{owner} has no body"

        results.append(evaluate(f"{prefix}.no_body", scope, check_no_body))

    return results


def check_request_body(
    document: ContractDocument, path: str, method: str, expectation: RequestBodyExpectation
) -> list[AssertionResult]:
    scope = operation_scope(path, method)

    def request_body() -> RequestBody:
        body = _operation(document, path, method).request_body
        if body is None:
            raise NotFoundError(f"{method.upper()} operation should have requestBody", key=scope)
        return resolve_request_body(document, body)

    def check_exists() -> str:
        request_body()
        return "requestBody exists"

    results = [evaluate("request_body.exists", scope, check_exists)]

    if expectation.schema_ref is not None:
        expected_ref = expectation.schema_ref

        def check_schema_ref() -> str:
            actual = _schema_ref(request_body().content, expectation.media_type, "requestBody")
            return _check_schema_ref(actual, expected_ref, "requestBody")

        results.append(evaluate("request_body.schema_ref", scope, check_schema_ref))

    if expectation.required is not None:
        expected_required = expectation.required

        def check_required() -> str:
            actual = request_body().required
            if actual is not expected_required:
                raise MismatchError(
                    f"requestBody should {'' if expected_required else 'NOT '}be required",
                    expected=expected_required,
                    actual=actual,
                )
            return f"requestBody required is {expected_required}"

        results.append(evaluate("request_body.required", scope, check_required))

    return results


def check_operation(
    document: ContractDocument, path: str, method: str, expectation: OperationExpectation
) -> list[AssertionResult]:
    method = method.lower()
    scope = operation_scope(path, method)

    def check_exists() -> str:
        _operation(document, path, method)
        return f"{scope} exists"

    results = [evaluate("operation.exists", scope, check_exists)]

    if expectation.summary is not None:
        expected_summary = expectation.summary

        def check_summary() -> str:
            actual = _operation(document, path, method).summary
            if actual != expected_summary:
                raise MismatchError(
                    f"{method.upper()} summary should match expected value",
                    expected=expected_summary,
                    actual=actual,
                )
            return "summary matches"

        results.append(evaluate("operation.summary", scope, check_summary))

    for needle in expectation.description_contains:

        def check_description_contains(needle: str = needle) -> str:
            description = _operation(document, path, method).description
            if not description:
                raise NotFoundError(f"{method.upper()} should have description", key=scope)
            if needle not in description:
                raise MismatchError(
                    f"Description should contain {needle}", expected=needle, actual=description
                )
            return f"description contains {needle}"

        results.append(
            evaluate(f"operation.description_contains.{needle}", scope, check_description_contains)
        )

    if expectation.description_contains_any:
        candidates = expectation.description_contains_any

        def check_description_any() -> str:
            description = _operation(document, path, method).description
            if not description:
                raise NotFoundError(f"{method.upper()} should have description", key=scope)
            matched = [needle for needle in candidates if needle in description]
            if not matched:
                raise MismatchError(
                    f"Description should mention one of {candidates}",
                    expected=candidates,
                    actual=description,
                )
            return f"description mentions {matched[0]}"

        results.append(evaluate("operation.description_contains_any", scope, check_description_any))

    for tag in expectation.tags:

        def check_tag(tag: str = tag) -> str:
            tags = _operation(document, path, method).tags
            if not tags:
                raise NotFoundError(f"{method.upper()} should have tags", key=scope)
            if tag not in tags:
                raise MismatchError(f"Tags should include {tag}", expected=tag, actual=tags)
            return f"tagged {tag}"

        results.append(evaluate(f"operation.tag.{tag}", scope, check_tag))

    if expectation.request_body is not None:
        results.extend(check_request_body(document, path, method, expectation.request_body))

    for status, response_expectation in expectation.responses.items():
        results.extend(check_response(document, path, method, status, response_expectation))

    return results


def check_path(document: ContractDocument, expectation: PathExpectation) -> list[AssertionResult]:
    path = expectation.path
    scope = path

    if not expectation.exists:

        def check_absent() -> str:
            if resolve_path(document, path) is not None:
                raise MismatchError(
                    f"Path {path} should NOT exist", expected="absent", actual="present"
                )
            return f"{path} is absent"

        return [evaluate("path.absent", scope, check_absent)]

    def check_exists() -> str:
        _path_item(document, path)
        return f"{path} exists"

    results = [evaluate("path.exists", scope, check_exists)]

    for ref in expectation.parameter_refs:

        def check_parameter_ref(ref: str = ref) -> str:
            parameters = _path_item(document, path).parameters
            if not parameters:
                raise NotFoundError("Path should have parameters", key=path)
            if not any(isinstance(item, Reference) and item.ref == ref for item in parameters):
                raise NotFoundError(
                    f"Should reference {ref.rsplit('/', 1)[-1]} parameter", key=ref
                )
            return f"references {ref}"

        results.append(evaluate(f"path.parameter_ref.{ref}", scope, check_parameter_ref))

    for method in expectation.methods_absent:

        def check_method_absent(method: str = method) -> str:
            if get_operation(_path_item(document, path), method) is not None:
                raise MismatchError(
                    f"Path should NOT have {method.upper()} operation",
                    expected="absent",
                    actual="present",
                )
            return f"no {method.upper()} operation"

        results.append(evaluate(f"path.method_absent.{method}", scope, check_method_absent))

    if expectation.placed_after_siblings:
        prefix = expectation.sibling_prefix or sibling_prefix(path)
        assertion_id = "path.order"
        try:
            violations = check_path_order(document, path, prefix)
        except ContractAssertionError as exc:
            results.append(failed(assertion_id, scope, exc))
        else:
            if violations:
                results.extend(failed(assertion_id, scope, violation) for violation in violations)
            else:
                results.append(passed(assertion_id, scope, f"{path} follows every {prefix}* path"))

    for method, operation_expectation in expectation.operations.items():
        results.extend(check_operation(document, path, method, operation_expectation))

    return results
