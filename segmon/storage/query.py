from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional

class _Unset:
    def __repr__(self):
        return "UNSET"


# Absent range bound; None is a legitimate JSON value.
UNSET: Any = _Unset()

Document = dict
Normaliser = Callable[[Document], Document]
FilterOverride = Callable[[Document, Mapping], bool]


@dataclass(frozen=True)
class Literal:
    """Substring match for text on both sides, strict equality otherwise."""

    value: Any

    def test(self, field: Any) -> bool:
        if isinstance(field, str) and isinstance(self.value, str):
            return self.value.lower() in field.lower()
        if isinstance(field, bool) != isinstance(self.value, bool):
            return False
        return field == self.value


@dataclass(frozen=True)
class Range:
    """Inclusive numeric/temporal bounds, each one optional."""

    min: Any = UNSET
    max: Any = UNSET

    def test(self, field: Any) -> bool:
        if not _rangeable(field):
            return False
        value = _instant(field)
        for bound in (self.min, self.max):
            # a bound that can't be compared with numbers/dates never matches
            if bound not in (UNSET, None) and not _rangeable(bound):
                return False
        if self.min not in (UNSET, None) and value < _instant(self.min):
            return False
        if self.max not in (UNSET, None) and value > _instant(self.max):
            return False
        return True


@dataclass(frozen=True)
class Predicate:
    fn: Callable[[Any], Any]

    def test(self, field: Any) -> bool:
        return bool(self.fn(field))


Condition = Literal | Range | Predicate


def _rangeable(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float, date))


def _instant(value: Any):
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).timestamp()
    return value


def as_condition(raw: Any) -> Condition:
    """Tag a raw filter value: callables are predicates, mappings are ranges."""
    if isinstance(raw, (Literal, Range, Predicate)):
        return raw
    if callable(raw):
        return Predicate(raw)
    if isinstance(raw, Mapping):
        return Range(min=raw.get("min", UNSET), max=raw.get("max", UNSET))
    return Literal(raw)


class QueryEngine:
    """Evaluates filter objects against documents (AND across keys)."""

    def __init__(
        self,
        normalise_document: Optional[Normaliser] = None,
        on_filter: Optional[FilterOverride] = None,
    ):
        self.normalise_document = normalise_document
        self.on_filter = on_filter

    def matches(self, document: Document, filter: Mapping | None) -> bool:
        doc = self.normalise_document(document) if self.normalise_document else document

        if self.on_filter is not None:
            return bool(self.on_filter(doc, filter or {}))

        for key, raw in (filter or {}).items():
            if not as_condition(raw).test(doc.get(key)):
                return False
        return True
