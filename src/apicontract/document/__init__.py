"""Contract document model, loader and resolver."""

from apicontract.document.loader import (
    canonical_hash,
    load_contract_document,
    parse_contract_document,
)
from apicontract.document.models import (
    HTTP_METHODS,
    ContractDocument,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    Reference,
    RequestBody,
    Response,
    Schema,
)
from apicontract.document.resolver import (
    get_operation,
    get_schema,
    iter_references,
    iter_schemas,
    resolve_path,
    resolve_reference,
    resolve_schema,
)

__all__ = [
    "HTTP_METHODS",
    "ContractDocument",
    "MediaType",
    "Operation",
    "Parameter",
    "PathItem",
    "Reference",
    "RequestBody",
    "Response",
    "Schema",
    "canonical_hash",
    "get_operation",
    "get_schema",
    "iter_references",
    "iter_schemas",
    "load_contract_document",
    "parse_contract_document",
    "resolve_path",
    "resolve_reference",
    "resolve_schema",
]
