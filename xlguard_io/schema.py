"""Field declarations and the metadata derived from them."""

# Module responsibilities:
# - Let export models declare per-field behaviour through dataclass field metadata.
# - Provide an explicit, registrable FieldTable for record types that are not dataclasses.
# - Derive immutable FieldDescriptor tuples (declaration order) on every call.

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence, Tuple, Union

UNSET_INDEX = -1
METADATA_KEY = "xlguard"


@dataclass(frozen=True)
class ExcelColumn:
    """Export declaration attached to a single model field."""

    header: Optional[str] = None
    index: int = UNSET_INDEX
    ignore: bool = False
    editable: bool = True
    options: Tuple[str, ...] = ()
    key: str = ""
    comment: Optional[str] = None


@dataclass(frozen=True)
class FieldDescriptor:
    """Resolved export metadata for one declared field."""

    name: str
    header: str
    index: int = UNSET_INDEX
    ignored: bool = False
    default_editable: bool = True
    select_options: Tuple[str, ...] = ()
    select_key: str = ""
    comment: Optional[str] = None

    @property
    def has_explicit_index(self) -> bool:
        return self.index != UNSET_INDEX


@dataclass(frozen=True)
class ColumnMeta:
    """Field placed at its final, contiguous column index."""

    field_name: str
    header: str
    index: int


def column(
    header: Optional[str] = None,
    *,
    index: int = UNSET_INDEX,
    ignore: bool = False,
    editable: bool = True,
    options: Iterable[str] = (),
    key: str = "",
    comment: Optional[str] = None,
    default: Any = None,
    default_factory: Any = dataclasses.MISSING,
) -> Any:
    """Declare a dataclass field together with its export behaviour.

    Example::

        @dataclass
        class Product:
            id: int = column("Product ID", editable=False)
            stock: int = column("Stock", options=["A", "B"], comment="Pick a grade")
    """

    declaration = ExcelColumn(
        header=header,
        index=index,
        ignore=ignore,
        editable=editable,
        options=tuple(str(option) for option in options),
        key=key,
        comment=comment,
    )
    if default_factory is not dataclasses.MISSING:
        return dataclasses.field(default_factory=default_factory, metadata={METADATA_KEY: declaration})
    return dataclasses.field(default=default, metadata={METADATA_KEY: declaration})


def _descriptor(name: str, declaration: Optional[ExcelColumn]) -> FieldDescriptor:
    if declaration is None:
        return FieldDescriptor(name=name, header=name)
    return FieldDescriptor(
        name=name,
        header=declaration.header or name,
        index=declaration.index,
        ignored=declaration.ignore,
        default_editable=declaration.editable,
        select_options=declaration.options,
        select_key=declaration.key,
        comment=declaration.comment,
    )


class FieldTable:
    """Explicit, ordered field descriptor table for one record type."""

    def __init__(self, descriptors: Iterable[FieldDescriptor] = ()) -> None:
        self._descriptors: list[FieldDescriptor] = []
        for descriptor in descriptors:
            self._append(descriptor)

    def _append(self, descriptor: FieldDescriptor) -> None:
        if any(existing.name == descriptor.name for existing in self._descriptors):
            raise ValueError(f"Field '{descriptor.name}' declared twice")
        self._descriptors.append(descriptor)

    def add(
        self,
        name: str,
        header: Optional[str] = None,
        *,
        index: int = UNSET_INDEX,
        ignore: bool = False,
        editable: bool = True,
        options: Iterable[str] = (),
        key: str = "",
        comment: Optional[str] = None,
    ) -> "FieldTable":
        """Append a field; returns ``self`` so declarations can be chained."""

        declaration = ExcelColumn(
            header=header,
            index=index,
            ignore=ignore,
            editable=editable,
            options=tuple(str(option) for option in options),
            key=key,
            comment=comment,
        )
        self._append(_descriptor(name, declaration))
        return self

    @property
    def descriptors(self) -> Tuple[FieldDescriptor, ...]:
        return tuple(self._descriptors)

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)


FieldSource = Union[type, FieldTable, Sequence[FieldDescriptor]]

_REGISTRY: Dict[type, FieldTable] = {}


def register_fields(model: type, table: FieldTable) -> None:
    """Register an explicit field table for ``model`` (takes precedence over dataclass metadata)."""

    _REGISTRY[model] = table


def unregister_fields(model: type) -> None:
    _REGISTRY.pop(model, None)


def describe(source: FieldSource) -> Tuple[FieldDescriptor, ...]:
    """Return the field descriptors of ``source`` in declaration order.

    Args:
        source: A dataclass type, a registered type, a ``FieldTable`` or a
            ready-made descriptor sequence.

    Raises:
        TypeError: When ``source`` carries no field declarations.
    """

    if isinstance(source, FieldTable):
        return source.descriptors
    if isinstance(source, type):
        if source in _REGISTRY:
            return _REGISTRY[source].descriptors
        if dataclasses.is_dataclass(source):
            return tuple(
                _descriptor(item.name, item.metadata.get(METADATA_KEY))
                for item in dataclasses.fields(source)
            )
        raise TypeError(f"{source.__name__} is neither a dataclass nor a registered field table")
    return tuple(source)


__all__ = [
    "UNSET_INDEX",
    "ExcelColumn",
    "FieldDescriptor",
    "ColumnMeta",
    "FieldTable",
    "FieldSource",
    "column",
    "describe",
    "register_fields",
    "unregister_fields",
]
