from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

"""Field mapping models.

FieldMapping describes one destination field declared by the caller. MappingSet is the
(immutable) association target_field -> source column chosen for the current file.

The key set of a MappingSet is closed: it is fixed to the declared target fields when
the set is created, so a typo in a target field name fails loudly instead of silently
producing a column nobody reads.
"""

__all__ = [
    "FieldMapping",
    "MappingSet",
    "UnknownFieldError",
]


class UnknownFieldError(KeyError):
    """Raised when a target field is not part of the declared schema."""


@dataclass(frozen=True)
class FieldMapping:
    """One destination field of the caller's schema.

    ``source_column_hint`` is an alternative literal header name tried by auto-mapping
    when no header equals the target field itself.
    """
    target_field: str
    required: bool = False
    source_column_hint: str | None = None

    @staticmethod
    def from_dict(raw: Mapping[str, Any]) -> FieldMapping:
        return FieldMapping(
            target_field=str(raw["target_field"]),
            required=bool(raw.get("required", False)),
            source_column_hint=raw.get("source_column_hint"),
        )


@dataclass(frozen=True)
class MappingSet:
    """Immutable target_field -> source column association.

    Unbound fields hold ``None``. Use :meth:`with_binding` (or the column mapper's
    ``set_mapping``) to derive a changed copy.
    """
    bindings: Mapping[str, str | None] = field(default_factory=dict)

    @classmethod
    def empty(cls, target_fields: Iterable[str]) -> MappingSet:
        return cls(bindings={f: None for f in target_fields})

    @property
    def target_fields(self) -> list[str]:
        return list(self.bindings.keys())

    def source_for(self, target_field: str) -> str | None:
        if target_field not in self.bindings:
            raise UnknownFieldError(target_field)
        return self.bindings[target_field]

    def with_binding(self, target_field: str, source_column: str | None) -> MappingSet:
        if target_field not in self.bindings:
            raise UnknownFieldError(target_field)
        updated = dict(self.bindings)
        # 空文字は未設定扱い
        updated[target_field] = source_column if source_column else None
        return MappingSet(bindings=updated)

    def bound(self) -> Iterator[tuple[str, str]]:
        """Yield (target_field, source_column) pairs that have a source column."""
        for target, source in self.bindings.items():
            if source:
                yield target, source

    def as_dict(self) -> dict[str, str | None]:
        return dict(self.bindings)
