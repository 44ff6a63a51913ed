from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from apicontract.document.models import ContractDocument
from apicontract.errors import ContractLoadError

logger = logging.getLogger(__name__)

_MERGE_TAG = "tag:yaml.org,2002:merge"


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses duplicate mapping keys.

    PyYAML keeps the last value for a repeated key, which would silently drop a
    path definition and shift the order of ``paths``.
    """

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _value_node in node.value:
            if key_node.tag == _MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                continue
            if duplicate:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def read_contract_mapping(path: Path) -> dict[str, Any]:
    """Read a YAML or JSON file that must contain a top-level mapping."""
    try:
        with path.open(encoding="utf-8") as handle:
            data = yaml.load(handle, Loader=UniqueKeyLoader)  # noqa: S506 - SafeLoader subclass
    except FileNotFoundError as exc:
        raise ContractLoadError(
            f"Contract file not found: {path}. Remediation: check the document path."
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ContractLoadError(f"Cannot read contract file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ContractLoadError(
            f"YAML parsing error in {path}: {exc}. Remediation: fix YAML syntax."
        ) from exc

    if not isinstance(data, dict):
        raise ContractLoadError(
            f"Contract file must contain a mapping: {path}. "
            "Remediation: ensure the top level is a mapping."
        )
    return data


def canonicalize(data: Any) -> Any:
    """Normalise a parsed tree so it serialises deterministically."""
    if isinstance(data, dict):
        normalized = {str(key): canonicalize(value) for key, value in data.items()}
        return {key: normalized[key] for key in sorted(normalized)}
    if isinstance(data, list):
        return [canonicalize(item) for item in data]
    return data


def serialize_canonical_json(data: Any) -> str:
    return json.dumps(
        canonicalize(data), sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )


def canonical_hash(data: Any) -> str:
    return hashlib.sha256(serialize_canonical_json(data).encode("utf-8")).hexdigest()


def format_validation_error(source: str, exc: ValidationError, *, hint: str) -> str:
    error_parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", []))
        message = error.get("msg", "Validation error")
        error_parts.append(f"{location}: {message}" if location else message)

    detail = "; ".join(error_parts)
    return f"Schema validation failed for {source}: {detail}. Remediation: {hint}"


def parse_contract_document(data: dict[str, Any], *, source: str = "<memory>") -> ContractDocument:
    """Build a :class:`ContractDocument` from an already parsed mapping."""
    try:
        return ContractDocument.from_mapping(
            data, source=source, document_hash=canonical_hash(data)
        )
    except ValidationError as exc:
        raise ContractLoadError(
            format_validation_error(
                source,
                exc,
                hint="references must be mappings with a '$ref' string, "
                "inline objects must be mappings.",
            )
        ) from exc


def load_contract_document(path: Path | str) -> ContractDocument:
    """Load and type a contract document.

    Raises:
        ContractLoadError: If the file is missing, malformed or does not fit
            the document model.
    """
    path = Path(path)
    data = read_contract_mapping(path)
    document = parse_contract_document(data, source=str(path))
    logger.debug(
        "Loaded contract document",
        extra={
            "event_type": "document_loaded",
            "source": str(path),
            "paths": len(document.paths),
            "schemas": len(document.schemas),
        },
    )
    return document
