from __future__ import annotations

from apicontract.document.models import ContractDocument
from apicontract.errors import NotFoundError, OrderingError


def sibling_prefix(target: str) -> str:
    """Literal prefix shared by ``target`` and its siblings.

    ``/v2/node/{nodeID}/lifecycle-state`` -> ``/v2/node/{nodeID}/``
    """
    return target[: target.rstrip("/").rfind("/") + 1]


def sibling_paths(document: ContractDocument, target: str, prefix: str | None = None) -> list[str]:
    prefix = sibling_prefix(target) if prefix is None else prefix
    return [key for key in document.path_keys() if key != target and key.startswith(prefix)]


def check_path_order(
    document: ContractDocument, target: str, prefix: str | None = None
) -> list[OrderingError]:
    """Return one :class:`OrderingError` per sibling placed after ``target``.

    Raises:
        NotFoundError: If ``target`` is not a key of ``paths``.
    """
    target_index = document.path_index(target)
    if target_index < 0:
        raise NotFoundError(f"Path {target} must exist in paths", key=target)

    violations = []
    for sibling in sibling_paths(document, target, prefix):
        sibling_index = document.path_index(sibling)
        if sibling_index > target_index:
            violations.append(OrderingError(sibling, sibling_index, target, target_index))
    return violations
