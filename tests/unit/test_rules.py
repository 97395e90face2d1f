import re

import pytest

from autofail.rules import (
    ContextIndependent,
    ExactListShape,
    ExactScalar,
    Hint,
    InvalidHintError,
    Pattern,
    Predicate,
    Undefined,
)


def test_from_spec_converts_each_slot_once() -> None:
    pattern = re.compile(r"_?FAIL")
    check = lambda *values: not values  # noqa: E731

    hint = Hint.from_spec({"scalar": pattern, "list": check})
    assert hint.scalar_rule == Pattern(pattern)
    assert hint.list_rule == Predicate(check)
    assert hint.unified_rule is None

    hint = Hint.from_spec({"scalar": None, "list": [0]})
    assert hint.scalar_rule == Undefined()
    assert hint.list_rule == ExactListShape((0,))

    hint = Hint.from_spec({"fail": 0})
    assert hint.unified_rule == ExactScalar(0)
    assert hint.populated_slots() == ("unified_rule",)


def test_from_spec_keeps_rule_instances() -> None:
    rule = ContextIndependent(ExactScalar(-1))
    assert Hint.from_spec({"fail": rule}).unified_rule is rule


def test_empty_hint_rejected() -> None:
    with pytest.raises(InvalidHintError) as excinfo:
        Hint.from_spec({}, "pkg.empty")
    assert excinfo.value.code == "hint_empty"
    assert excinfo.value.callable_name == "pkg.empty"


def test_unified_with_context_slot_rejected() -> None:
    with pytest.raises(InvalidHintError) as excinfo:
        Hint.from_spec({"scalar": 0, "fail": 0}, "pkg.bar")
    assert excinfo.value.code == "hint_ambiguous"
    assert excinfo.value.slots == ("scalar_rule", "unified_rule")
    assert "pkg.bar" in str(excinfo.value)


def test_unknown_key_rejected() -> None:
    with pytest.raises(InvalidHintError) as excinfo:
        Hint.from_spec({"scalar": 0, "lst": [0]})
    assert excinfo.value.code == "hint_key_unknown"
    assert excinfo.value.slots == ("lst",)


@pytest.mark.parametrize(
    "slots",
    [
        {"scalar_rule": ExactListShape((0,))},
        {"scalar_rule": 0},
        {"list_rule": ExactScalar(0)},
        {"list_rule": Pattern(re.compile("x"))},
        {"scalar_rule": ContextIndependent(ExactScalar(0))},
        {"unified_rule": ContextIndependent(ExactListShape((0,)))},
    ],
)
def test_misplaced_rules_rejected_on_construction(slots) -> None:
    with pytest.raises(InvalidHintError) as excinfo:
        Hint(**slots)
    assert excinfo.value.code == "hint_slot_invalid"


def test_sequence_outside_list_slot_rejected() -> None:
    with pytest.raises(InvalidHintError) as excinfo:
        Hint.from_spec({"scalar": [0], "list": [0]})
    assert excinfo.value.slots == ("scalar_rule",)


def test_invalid_hint_error_is_value_error() -> None:
    assert issubclass(InvalidHintError, ValueError)


def test_empty_and_ambiguous_hints_cannot_be_constructed() -> None:
    with pytest.raises(InvalidHintError) as excinfo:
        Hint()
    assert excinfo.value.code == "hint_empty"

    with pytest.raises(InvalidHintError) as excinfo:
        Hint(list_rule=ExactListShape((0,)), unified_rule=ExactScalar(0))
    assert excinfo.value.code == "hint_ambiguous"
    assert excinfo.value.slots == ("list_rule", "unified_rule")


def test_validate_attaches_callable_name_to_valid_hint() -> None:
    hint = Hint(scalar_rule=Undefined())
    assert hint.validate("pkg.lookup") is hint
