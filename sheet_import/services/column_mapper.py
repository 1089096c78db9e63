from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..models.mapping import FieldMapping, MappingSet, UnknownFieldError

"""Column mapping service.

auto_map proposes an initial MappingSet from the header row; set_mapping applies a
manual override; is_complete is the gate that must pass before preview/commit.

Matching is literal: a header binds a target field only when the trimmed,
case-insensitive texts are equal. "E-mail" does not bind "email". Anything ambiguous
is left unset for the user to choose.

The target field identifier is always tried first. A field may also declare a
``source_column_hint`` (config ``fields[].source_column_hint``); it is tried second,
under the same literal rule, only when the identifier itself matched nothing. A field
without a hint behaves exactly as identifier-only matching.

Decisions for cases the callers never specified:
- duplicate header names: the first matching header wins
- one source column bound to several target fields: allowed (the caller owns any
  resulting collision)
"""

__all__ = [
    "auto_map",
    "set_mapping",
    "is_complete",
    "missing_required",
    "UnknownFieldError",
]

logger = logging.getLogger(__name__)


def _normalize(name: str) -> str:
    return name.strip().casefold()


def _find_header(headers: Sequence[str | None], wanted: str) -> str | None:
    key = _normalize(wanted)
    for header in headers:
        if header and _normalize(header) == key:
            return header
    return None


def auto_map(headers: Sequence[str | None], field_mappings: Iterable[FieldMapping]) -> MappingSet:
    """Propose a mapping by exact (trimmed, case-insensitive) header name match.

    For each field the target field identifier is tried first, then its
    ``source_column_hint``. Declaration order of fields and headers does not matter.
    """
    bindings: dict[str, str | None] = {}
    for fm in field_mappings:
        match = _find_header(headers, fm.target_field)
        if match is None and fm.source_column_hint:
            match = _find_header(headers, fm.source_column_hint)
        bindings[fm.target_field] = match
    mapped = sum(1 for v in bindings.values() if v)
    logger.debug("auto_map bound %d/%d fields", mapped, len(bindings))
    return MappingSet(bindings=bindings)


def set_mapping(current: MappingSet, target_field: str, source_column: str | None) -> MappingSet:
    """Return a copy of ``current`` with ``target_field`` bound to ``source_column``.

    None or "" unbinds the field. Raises UnknownFieldError for undeclared fields.
    """
    return current.with_binding(target_field, source_column)


def missing_required(mapping_set: MappingSet, field_mappings: Iterable[FieldMapping]) -> list[str]:
    """Required target fields without a (non-blank) source column, in declaration order."""
    missing: list[str] = []
    for fm in field_mappings:
        if not fm.required:
            continue
        source = mapping_set.bindings.get(fm.target_field)
        if not source or not source.strip():
            missing.append(fm.target_field)
    return missing


def is_complete(mapping_set: MappingSet, field_mappings: Iterable[FieldMapping]) -> bool:
    return not missing_required(mapping_set, field_mappings)
