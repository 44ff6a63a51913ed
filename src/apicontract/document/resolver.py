"""Lookup helpers over a loaded :class:`ContractDocument`.

Path lookup is an exact key match: templates such as ``/v2/node/{nodeID}`` are
literal strings, never patterns. Reference resolution follows local JSON
pointers (``#/components/schemas/Name``) over the raw document.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import TypeAdapter, ValidationError

from apicontract.document.models import (
    ContractDocument,
    MediaType,
    Operation,
    Parameter,
    ParameterOrRef,
    PathItem,
    Reference,
    RequestBody,
    RequestBodyOrRef,
    Response,
    ResponseOrRef,
    Schema,
    SchemaOrRef,
)
from apicontract.errors import NotFoundError


def resolve_path(document: ContractDocument, template: str) -> PathItem | None:
    return document.paths.get(template)


def get_operation(path_item: PathItem, method: str) -> Operation | None:
    return path_item.operations().get(method.lower())


def get_schema(document: ContractDocument, name: str) -> Schema | Reference | None:
    return document.schemas.get(name)


def escape_pointer_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def _unescape_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def split_local_ref(ref: str) -> list[str]:
    """Split ``#/a/b~1c`` into ``["a", "b/c"]``.

    Raises:
        NotFoundError: If ``ref`` is not a local JSON pointer.
    """
    if ref == "#":
        return []
    if not ref.startswith("#/"):
        raise NotFoundError(
            f"Reference {ref!r} is not a local JSON pointer and cannot be resolved",
            key=ref,
        )
    return [_unescape_pointer_token(token) for token in ref[2:].split("/")]


def resolve_reference(document: ContractDocument, ref: str) -> Any:
    """Return the raw node ``ref`` points at.

    Raises:
        NotFoundError: If the pointer is not local or its target is absent.
    """
    parts = split_local_ref(ref)
    try:
        return document.lookup_raw(parts)
    except KeyError as exc:
        raise NotFoundError(
            f"Reference {ref!r} does not resolve: missing key {exc.args[0]!r}", key=ref
        ) from exc


_COMPONENT_SECTIONS = {
    "schemas": "schemas",
    "parameters": "parameters",
    "responses": "responses",
    "requestBodies": "request_bodies",
}

_SECTION_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "schemas": TypeAdapter(SchemaOrRef),
    "parameters": TypeAdapter(ParameterOrRef),
    "responses": TypeAdapter(ResponseOrRef),
    "requestBodies": TypeAdapter(RequestBodyOrRef),
}


def _component(document: ContractDocument, ref: str, section: str) -> Any:
    parts = split_local_ref(ref)
    if len(parts) < 3 or parts[0] != "components" or parts[1] != section:
        raise NotFoundError(
            f"Reference {ref!r} does not point into #/components/{section}", key=ref
        )
    if len(parts) == 3:
        table = getattr(document.components, _COMPONENT_SECTIONS[section])
        if parts[2] not in table:
            raise NotFoundError(f"Reference {ref!r} does not resolve", key=ref)
        return table[parts[2]]

    # deeper pointers such as #/components/schemas/Node/properties/id
    node = resolve_reference(document, ref)
    try:
        return _SECTION_ADAPTERS[section].validate_python({} if node is None else node)
    except ValidationError as exc:
        raise NotFoundError(
            f"Reference {ref!r} does not point at a valid {section} entry", key=ref
        ) from exc


def _follow(document: ContractDocument, item: Any, section: str, expected: type) -> Any:
    seen: list[str] = []
    while isinstance(item, Reference):
        if item.ref in seen:
            chain = " -> ".join([*seen, item.ref])
            raise NotFoundError(f"Reference cycle: {chain}", key=item.ref)
        seen.append(item.ref)
        item = _component(document, item.ref, section)
    if not isinstance(item, expected):
        raise NotFoundError(f"Reference chain {seen} does not end in a {section} entry")
    return item


def resolve_schema(document: ContractDocument, schema: Schema | Reference) -> Schema:
    return _follow(document, schema, "schemas", Schema)


def resolve_response(document: ContractDocument, response: Response | Reference) -> Response:
    return _follow(document, response, "responses", Response)


def resolve_request_body(
    document: ContractDocument, request_body: RequestBody | Reference
) -> RequestBody:
    return _follow(document, request_body, "requestBodies", RequestBody)


def iter_references(document: ContractDocument) -> Iterator[tuple[str, str]]:
    """Yield ``(location, ref)`` for every ``$ref`` string in document order."""

    def walk(node: Any, location: str) -> Iterator[tuple[str, str]]:
        if isinstance(node, dict):
            ref = node.get("$ref")
            if isinstance(ref, str):
                yield location or "#", ref
            for key, value in node.items():
                if key == "$ref":
                    continue
                yield from walk(value, f"{location}/{escape_pointer_token(str(key))}")
        elif isinstance(node, list):
            for index, value in enumerate(node):
                yield from walk(value, f"{location}/{index}")

    yield from walk(document.raw, "#")


_LocatedSchemas = Iterator[tuple[str, Schema]]


def iter_schemas(document: ContractDocument) -> _LocatedSchemas:
    """Yield ``(location, schema)`` for every inline schema in the typed tree.

    Covers component schemas and everything nested in them (properties, items,
    composition members, additionalProperties) as well as parameter, request
    body and response media-type schemas. References are not followed.
    """

    def walk_schema(schema: Schema | Reference | None, location: str) -> _LocatedSchemas:
        if not isinstance(schema, Schema):
            return
        yield location, schema
        for name, prop in schema.properties.items():
            yield from walk_schema(prop, f"{location}/properties/{escape_pointer_token(name)}")
        yield from walk_schema(schema.items, f"{location}/items")
        for keyword, members in (
            ("allOf", schema.all_of),
            ("oneOf", schema.one_of),
            ("anyOf", schema.any_of),
        ):
            for index, member in enumerate(members or []):
                yield from walk_schema(member, f"{location}/{keyword}/{index}")
        if isinstance(schema.additional_properties, Schema):
            yield from walk_schema(schema.additional_properties, f"{location}/additionalProperties")

    def walk_content(content: dict[str, MediaType] | None, location: str) -> _LocatedSchemas:
        for media_type, media in (content or {}).items():
            yield from walk_schema(
                media.schema_, f"{location}/content/{escape_pointer_token(media_type)}/schema"
            )

    def walk_parameter(parameter: Parameter | Reference, location: str) -> _LocatedSchemas:
        if isinstance(parameter, Parameter):
            yield from walk_schema(parameter.schema_, f"{location}/schema")

    def walk_request_body(body: RequestBody | Reference | None, location: str) -> _LocatedSchemas:
        if isinstance(body, RequestBody):
            yield from walk_content(body.content, location)

    def walk_response(response: Response | Reference, location: str) -> _LocatedSchemas:
        if isinstance(response, Response):
            yield from walk_content(response.content, location)

    for path, item in document.paths.items():
        path_location = f"#/paths/{escape_pointer_token(path)}"
        for index, parameter in enumerate(item.parameters):
            yield from walk_parameter(parameter, f"{path_location}/parameters/{index}")
        for method, operation in item.operations().items():
            location = f"{path_location}/{method}"
            for index, parameter in enumerate(operation.parameters):
                yield from walk_parameter(parameter, f"{location}/parameters/{index}")
            yield from walk_request_body(operation.request_body, f"{location}/requestBody")
            for status, response in operation.responses.items():
                yield from walk_response(
                    response, f"{location}/responses/{escape_pointer_token(status)}"
                )

    components = document.components
    for name, schema in components.schemas.items():
        yield from walk_schema(schema, f"#/components/schemas/{escape_pointer_token(name)}")
    for name, parameter in components.parameters.items():
        location = f"#/components/parameters/{escape_pointer_token(name)}"
        yield from walk_parameter(parameter, location)
    for name, response in components.responses.items():
        yield from walk_response(response, f"#/components/responses/{escape_pointer_token(name)}")
    for name, body in components.request_bodies.items():
        location = f"#/components/requestBodies/{escape_pointer_token(name)}"
        yield from walk_request_body(body, location)
