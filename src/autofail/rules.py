from __future__ import annotations

import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, Mapping


class CallContext(str, Enum):
    SCALAR = "scalar"
    LIST = "list"


class InvalidHintError(ValueError):
    """Raised when a hint is built or registered empty, ambiguous or malformed."""

    def __init__(
        self,
        code: str,
        callable_name: str | None = None,
        slots: tuple[str, ...] = (),
    ) -> None:
        detail = code
        if callable_name:
            detail = f"{detail}:{callable_name}"
        if slots:
            detail = f"{detail}[{','.join(slots)}]"
        super().__init__(detail)
        self.code = code
        self.callable_name = callable_name
        self.slots = slots


class Rule:
    """Marker base for the matcher variants a hint slot can hold."""


@dataclass(frozen=True)
class Undefined(Rule):
    pass


@dataclass(frozen=True)
class ExactScalar(Rule):
    value: Any


@dataclass(frozen=True)
class ExactListShape(Rule):
    values: tuple

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class Pattern(Rule):
    regex: re.Pattern

    def __post_init__(self) -> None:
        if isinstance(self.regex, str):
            object.__setattr__(self, "regex", re.compile(self.regex))


@dataclass(frozen=True)
class Predicate(Rule):
    fn: Callable[..., Any]


@dataclass(frozen=True)
class ContextIndependent(Rule):
    # Evaluated against the side-channel value captured when the callable returned.
    rule: Rule


SCALAR_RULES = (Undefined, ExactScalar, Pattern, Predicate)
LIST_RULES = (ExactListShape, Predicate)
UNIFIED_RULES = (Undefined, ExactScalar, Pattern, Predicate, ContextIndependent)

SPEC_KEYS = {"scalar": "scalar_rule", "list": "list_rule", "fail": "unified_rule"}


@dataclass(frozen=True)
class Hint:
    scalar_rule: Rule | None = None
    list_rule: Rule | None = None
    unified_rule: Rule | None = None

    def __post_init__(self) -> None:
        check_slots(self.scalar_rule, self.list_rule, self.unified_rule)

    def populated_slots(self) -> tuple[str, ...]:
        return tuple(f.name for f in fields(self) if getattr(self, f.name) is not None)

    def validate(self, callable_name: str | None = None) -> "Hint":
        check_slots(self.scalar_rule, self.list_rule, self.unified_rule, callable_name)
        return self

    @classmethod
    def from_spec(cls, spec: Mapping[str, Any], name: str | None = None) -> "Hint":
        """Build a validated hint from a ``{"scalar": ..., "list": ..., "fail": ...}`` table.

        Plain values become ``ExactScalar``, ``None`` becomes ``Undefined``,
        compiled patterns become ``Pattern``, callables become ``Predicate`` and
        sequences in the ``list`` slot become ``ExactListShape``. Existing
        ``Rule`` instances pass through unchanged.
        """
        if isinstance(spec, Hint):
            return spec.validate(name)
        if not isinstance(spec, Mapping):
            raise InvalidHintError("hint_slot_invalid", name)
        unknown = tuple(sorted(str(key) for key in spec if key not in SPEC_KEYS))
        if unknown:
            raise InvalidHintError("hint_key_unknown", name, unknown)
        slots = {
            SPEC_KEYS[key]: coerce_rule(value, key, name)
            for key, value in spec.items()
        }
        check_slots(callable_name=name, **slots)
        return cls(**slots)


def check_slots(
    scalar_rule: Rule | None = None,
    list_rule: Rule | None = None,
    unified_rule: Rule | None = None,
    callable_name: str | None = None,
) -> None:
    slots = {"scalar_rule": scalar_rule, "list_rule": list_rule, "unified_rule": unified_rule}
    populated = tuple(slot for slot, rule in slots.items() if rule is not None)
    if not populated:
        raise InvalidHintError("hint_empty", callable_name)
    if unified_rule is not None and len(populated) > 1:
        raise InvalidHintError("hint_ambiguous", callable_name, populated)
    _check_slot(scalar_rule, SCALAR_RULES, "scalar_rule", callable_name)
    _check_slot(list_rule, LIST_RULES, "list_rule", callable_name)
    _check_slot(unified_rule, UNIFIED_RULES, "unified_rule", callable_name)
    if isinstance(unified_rule, ContextIndependent):
        _check_slot(unified_rule.rule, SCALAR_RULES, "unified_rule", callable_name)


def coerce_rule(value: Any, key: str, name: str | None = None) -> Rule:
    if isinstance(value, Rule):
        return value
    if value is None:
        return Undefined()
    if isinstance(value, re.Pattern):
        return Pattern(value)
    if callable(value):
        return Predicate(value)
    if isinstance(value, (list, tuple)):
        if key != "list":
            raise InvalidHintError("hint_slot_invalid", name, (SPEC_KEYS[key],))
        return ExactListShape(tuple(value))
    return ExactScalar(value)


def _check_slot(
    rule: Rule | None,
    allowed: tuple[type, ...],
    slot: str,
    callable_name: str | None,
) -> None:
    if rule is None:
        return
    if not isinstance(rule, allowed):
        raise InvalidHintError("hint_slot_invalid", callable_name, (slot,))
