from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Sequence

from autofail.rules import (
    CallContext,
    ContextIndependent,
    ExactListShape,
    ExactScalar,
    Hint,
    Pattern,
    Predicate,
    Rule,
    Undefined,
)


def is_failure(
    hint: Hint | None,
    context: CallContext,
    result: Any,
    side_channel: Any = None,
) -> bool:
    """Decide whether a call that produced ``result`` failed.

    ``result`` is the single returned value for ``CallContext.SCALAR`` and the
    sequence of returned values for ``CallContext.LIST``. ``side_channel`` is
    the out-of-band status captured by the caller right after the call
    returned; only ``ContextIndependent`` rules read it.

    A non-matching rule is simply ``False``. In list context a ``Predicate``
    is called as ``fn(*values)``, so it must accept any number of arguments,
    including none for an empty result. Exceptions raised by a ``Predicate``
    propagate to the caller.
    """
    context = CallContext(context)
    if hint is None:
        return default_failure(context, result)

    if hint.unified_rule is not None:
        return _match_unified(hint.unified_rule, context, result, side_channel)

    rule = hint.scalar_rule if context is CallContext.SCALAR else hint.list_rule
    if rule is None:
        return default_failure(context, result)
    if context is CallContext.SCALAR:
        return match_scalar(rule, result)
    return match_list(rule, _as_tuple(result))


def default_failure(context: CallContext, result: Any) -> bool:
    if context is CallContext.SCALAR:
        return default_scalar_failure(result)
    return default_list_failure(_as_tuple(result))


def default_scalar_failure(value: Any) -> bool:
    return not value


def default_list_failure(values: Sequence[Any]) -> bool:
    # () and (None,) are the conventional "nothing came back" results.
    return len(values) == 0 or (len(values) == 1 and values[0] is None)


def match_scalar(rule: Rule, value: Any) -> bool:
    if isinstance(rule, Undefined):
        return value is None
    if isinstance(rule, ExactScalar):
        return bool(value == rule.value)
    if isinstance(rule, Pattern):
        return _pattern_matches(rule, value)
    if isinstance(rule, Predicate):
        return bool(rule.fn(value))
    raise TypeError(f"unsupported scalar rule: {rule!r}")


def match_list(rule: Rule, values: tuple) -> bool:
    if isinstance(rule, ExactListShape):
        return bool(values == rule.values)
    if isinstance(rule, Predicate):
        return bool(rule.fn(*values))
    raise TypeError(f"unsupported list rule: {rule!r}")


def _match_unified(rule: Rule, context: CallContext, result: Any, side_channel: Any) -> bool:
    if isinstance(rule, ContextIndependent):
        return match_scalar(rule.rule, side_channel)
    if context is CallContext.SCALAR:
        return match_scalar(rule, result)
    values = _as_tuple(result)
    if isinstance(rule, Predicate):
        return bool(rule.fn(*values))
    return any(match_scalar(rule, value) for value in values)


def _pattern_matches(rule: Pattern, value: Any) -> bool:
    text = "" if value is None else str(value)
    if rule.regex.fullmatch(text):
        return True
    # Perl's $ also binds before a single trailing newline.
    return text.endswith("\n") and rule.regex.fullmatch(text[:-1]) is not None


def _as_tuple(result: Any) -> tuple:
    if result is None:
        return ()
    if isinstance(result, tuple):
        return result
    if isinstance(result, (str, bytes)) or not isinstance(result, Iterable):
        return (result,)
    return tuple(result)
