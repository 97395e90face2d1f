from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from autofail.matcher import is_failure
from autofail.registry import HintRegistry, callable_name, default_registry, load_configured_providers
from autofail.rules import CallContext, Hint
from core.config import settings
from core.metrics import record_classification, start_metrics_server

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationOutcome:
    failure: bool
    source: str
    context: CallContext


def classify(
    fn: Callable[..., Any],
    context: CallContext | str,
    result: Any,
    side_channel: Any = None,
    registry: HintRegistry | None = None,
) -> ClassificationOutcome:
    if registry is None:
        registry = default_registry
    context = CallContext(context)
    hint = registry.lookup(fn)
    failure = is_failure(hint, context, result, side_channel)
    source = _verdict_source(hint, context)
    record_classification(context.value, failure, source)
    if settings.hint_log_verdicts:
        logger.debug(
            "classified callable=%s context=%s source=%s failure=%s",
            callable_name(fn),
            context.value,
            source,
            failure,
        )
    return ClassificationOutcome(failure=failure, source=source, context=context)


def bootstrap(registry: HintRegistry | None = None) -> int:
    """Load the providers named in ``settings.hint_providers`` and expose metrics."""
    if registry is None:
        registry = default_registry
    loaded = load_configured_providers(registry)
    start_metrics_server(settings.metrics_port)
    logger.info("autofail_ready registry=%s hints=%s", registry.name, len(registry))
    return loaded


def call_failed(
    fn: Callable[..., Any],
    context: CallContext | str,
    result: Any,
    side_channel: Any = None,
    registry: HintRegistry | None = None,
) -> bool:
    return classify(fn, context, result, side_channel, registry).failure


def _verdict_source(hint: Hint | None, context: CallContext) -> str:
    if hint is None:
        return "default"
    if hint.unified_rule is not None:
        return "hint"
    rule = hint.scalar_rule if context is CallContext.SCALAR else hint.list_rule
    return "hint" if rule is not None else "default"
