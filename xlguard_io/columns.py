"""Column resolution: which declared field lands in which physical column."""

# Module responsibilities:
# - Compute a stable, gap-free field -> column index layout honouring explicit
#   indices, declaration order and per-call exclusion sets.
# - Look a field up by the header text that was actually rendered.

from __future__ import annotations

from collections import defaultdict
from typing import Collection, Dict, List, Optional, Sequence

from .schema import ColumnMeta, FieldDescriptor, FieldSource, describe
from .utils.log import get_logger

logger = get_logger("columns")


def _warn_duplicate_indices(descriptors: Sequence[FieldDescriptor]) -> None:
    by_index: Dict[int, List[str]] = defaultdict(list)
    for descriptor in descriptors:
        if descriptor.has_explicit_index and not descriptor.ignored:
            by_index[descriptor.index].append(descriptor.name)
    clashes = {index: names for index, names in by_index.items() if len(names) > 1}
    if clashes:
        logger.warning(
            "Duplicate explicit column indices; declaration order decides",
            extra={"clashes": clashes},
        )


def resolve_columns(
    source: FieldSource,
    exclude: Collection[str] = (),
) -> List[ColumnMeta]:
    """Resolve the final column layout for ``source``.

    Ignored fields and fields named in ``exclude`` are dropped. Remaining fields
    keep their explicit index; the others take the lowest index not claimed by
    any explicit index declared on the type (excluded and ignored fields
    included). The result is sorted by that index, ties kept in declaration
    order, then renumbered from 0.

    Args:
        source: Model type, field table or descriptor sequence.
        exclude: Field names to leave out of this document.

    Returns:
        Column metadata ordered by final index ``0..k-1``.
    """

    descriptors = describe(source)
    excluded = set(exclude)
    claimed = {d.index for d in descriptors if d.has_explicit_index}
    _warn_duplicate_indices(descriptors)

    placed: List[tuple[int, FieldDescriptor]] = []
    cursor = 0
    for descriptor in descriptors:
        if descriptor.ignored or descriptor.name in excluded:
            continue
        if descriptor.has_explicit_index:
            placed.append((descriptor.index, descriptor))
            continue
        while cursor in claimed:
            cursor += 1
        placed.append((cursor, descriptor))
        cursor += 1

    # sorted() is stable: equal indices stay in declaration order.
    placed.sort(key=lambda item: item[0])
    return [
        ColumnMeta(field_name=descriptor.name, header=descriptor.header, index=position)
        for position, (_, descriptor) in enumerate(placed)
    ]


def find_field_by_header(source: FieldSource, header_text: str) -> Optional[str]:
    """Return the first non-ignored field whose header equals ``header_text``."""

    for descriptor in describe(source):
        if descriptor.ignored:
            continue
        if descriptor.header == header_text:
            return descriptor.name
    return None


__all__ = ["resolve_columns", "find_field_by_header"]
