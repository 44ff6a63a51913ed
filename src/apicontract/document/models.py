"""Typed parse tree for OpenAPI-style contract documents.

Every object that may be either a ``$ref`` pointer or an inline definition is
parsed into an explicit union at load time: a mapping carrying ``$ref`` becomes
a :class:`Reference`, every other mapping becomes the inline model. Anything
that is not a mapping where one is expected fails validation, so assertion code
never pokes at optional keys on loosely typed dicts.

Unknown keys (``x-`` extensions, ``info``, ``servers`` ...) are kept as extras
and never interpreted. All models are frozen.
"""

from __future__ import annotations

import copy
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    PrivateAttr,
    Tag,
    field_validator,
)

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "options",
    "head",
    "patch",
    "trace",
)


class ContractModel(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)


class Reference(ContractModel):
    """A ``$ref`` pointer. Sibling keywords (``example``, ``nullable`` ...) are kept as extras."""

    ref: str = Field(alias="$ref")
    summary: str | None = None
    description: str | None = None


def _ref_or_inline(value: Any) -> str | None:
    if isinstance(value, dict):
        return "ref" if "$ref" in value else "inline"
    if isinstance(value, Reference):
        return "ref"
    if isinstance(value, BaseModel):
        return "inline"
    return None


class Schema(ContractModel):
    type: str | list[str] | None = None
    format: str | None = None
    title: str | None = None
    description: str | None = None
    enum: list[Any] | None = None
    example: Any = None
    default: Any = None
    nullable: bool | None = None
    properties: dict[str, SchemaOrRef] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    items: SchemaOrRef | None = None
    all_of: list[SchemaOrRef] | None = Field(default=None, alias="allOf")
    one_of: list[SchemaOrRef] | None = Field(default=None, alias="oneOf")
    any_of: list[SchemaOrRef] | None = Field(default=None, alias="anyOf")
    additional_properties: bool | SchemaOrRef | None = Field(
        default=None, alias="additionalProperties"
    )

    @field_validator("properties", mode="before")
    @classmethod
    def _empty_properties_are_present(cls, value: Any) -> Any:
        # ``phase:`` with no body is still a declared property
        if isinstance(value, dict):
            return {key: ({} if item is None else item) for key, item in value.items()}
        if value is None:
            return {}
        return value

    @property
    def has_example(self) -> bool:
        return "example" in self.model_fields_set

    @property
    def is_composed(self) -> bool:
        return bool(self.all_of or self.one_of or self.any_of)


SchemaOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[Schema, Tag("inline")]],
    Discriminator(_ref_or_inline),
]


class Parameter(ContractModel):
    name: str
    location: Literal["query", "header", "path", "cookie"] = Field(alias="in")
    description: str | None = None
    required: bool = False
    deprecated: bool = False
    schema_: SchemaOrRef | None = Field(default=None, alias="schema")


ParameterOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[Parameter, Tag("inline")]],
    Discriminator(_ref_or_inline),
]


class MediaType(ContractModel):
    schema_: SchemaOrRef | None = Field(default=None, alias="schema")
    example: Any = None


class RequestBody(ContractModel):
    description: str | None = None
    content: dict[str, MediaType] | None = None
    required: bool = False


RequestBodyOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[RequestBody, Tag("inline")]],
    Discriminator(_ref_or_inline),
]


class Response(ContractModel):
    description: str | None = None
    # None means the key is absent; {} is an explicitly empty mapping
    content: dict[str, MediaType] | None = None
    headers: dict[str, Any] | None = None


ResponseOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[Response, Tag("inline")]],
    Discriminator(_ref_or_inline),
]


def stringify_status_keys(value: Any) -> Any:
    """Turn ``200`` keys into ``"200"``; two keys naming the same status are an error."""
    if not isinstance(value, dict):
        return value
    normalized: dict[str, Any] = {}
    for key, item in value.items():
        name = str(key)
        if name in normalized:
            raise ValueError(f"status code {name} is declared more than once")
        normalized[name] = item
    return normalized


class Operation(ContractModel):
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = Field(default=None, alias="operationId")
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False
    parameters: list[ParameterOrRef] = Field(default_factory=list)
    request_body: RequestBodyOrRef | None = Field(default=None, alias="requestBody")
    responses: dict[str, ResponseOrRef] = Field(default_factory=dict)

    @field_validator("responses", mode="before")
    @classmethod
    def _status_codes_as_strings(cls, value: Any) -> Any:
        # YAML reads an unquoted 200 as an int
        return stringify_status_keys(value)


class PathItem(ContractModel):
    summary: str | None = None
    description: str | None = None
    parameters: list[ParameterOrRef] = Field(default_factory=list)
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    options: Operation | None = None
    head: Operation | None = None
    patch: Operation | None = None
    trace: Operation | None = None

    def operations(self) -> dict[str, Operation]:
        """Declared operations keyed by lower-case method name."""
        return {
            method: operation
            for method in HTTP_METHODS
            if (operation := getattr(self, method)) is not None
        }


class Components(ContractModel):
    schemas: dict[str, SchemaOrRef] = Field(default_factory=dict)
    parameters: dict[str, ParameterOrRef] = Field(default_factory=dict)
    responses: dict[str, ResponseOrRef] = Field(default_factory=dict)
    request_bodies: dict[str, RequestBodyOrRef] = Field(
        default_factory=dict, alias="requestBodies"
    )


class ContractDocument(ContractModel):
    """Root of a loaded contract document.

    ``paths`` keeps the order in which templates appear in the source file;
    :meth:`path_index` is the position used by ordering checks.
    """

    openapi: str | None = None
    paths: dict[str, PathItem] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)
    _source: str = PrivateAttr(default="<memory>")
    _document_hash: str = PrivateAttr(default="")

    @field_validator("paths", mode="before")
    @classmethod
    def _paths_not_null(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("components", mode="before")
    @classmethod
    def _components_not_null(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_mapping(
        cls,
        data: dict[str, Any],
        *,
        source: str = "<memory>",
        document_hash: str = "",
    ) -> ContractDocument:
        """Validate ``data`` and keep a private copy of it for pointer lookups.

        Raises:
            pydantic.ValidationError: If ``data`` does not fit the model.
        """
        document = cls.model_validate(data)
        document._raw = copy.deepcopy(data)
        document._source = source
        document._document_hash = document_hash
        return document

    @property
    def raw(self) -> dict[str, Any]:
        """A copy of the mapping the document was parsed from."""
        return copy.deepcopy(self._raw)

    @property
    def source(self) -> str:
        return self._source

    @property
    def document_hash(self) -> str:
        return self._document_hash

    @property
    def schemas(self) -> dict[str, Schema | Reference]:
        return self.components.schemas

    def path_keys(self) -> tuple[str, ...]:
        return tuple(self.paths)

    def path_index(self, key: str) -> int:
        """Position of ``key`` in document order, or -1 when absent."""
        for index, candidate in enumerate(self.paths):
            if candidate == key:
                return index
        return -1

    def lookup_raw(self, parts: list[str]) -> Any:
        """Walk the raw mapping along already-unescaped pointer tokens.

        Raises:
            KeyError: If a token does not exist.
        """
        node: Any = self._raw
        for part in parts:
            if isinstance(node, dict):
                if part in node:
                    node = node[part]
                    continue
                # status codes and other numeric keys may still be ints in raw
                if part.isdigit() and int(part) in node:
                    node = node[int(part)]
                    continue
                raise KeyError(part)
            if isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
                continue
            raise KeyError(part)
        return node


for _model in (
    Schema,
    Parameter,
    MediaType,
    RequestBody,
    Response,
    Operation,
    PathItem,
    Components,
    ContractDocument,
):
    _model.model_rebuild()
