from __future__ import annotations

import importlib
import logging
import threading
from typing import Any, Callable, Mapping

from autofail.rules import Hint, InvalidHintError
from core.config import settings
from core.metrics import record_hint_error, record_hints_registered

logger = logging.getLogger(__name__)

PROVIDER_HOOK = "AUTOFAIL_HINTS"


class HintLoadError(Exception):
    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


class HintRegistry:
    """Maps callables, by identity, to their registered hints.

    Writers serialize on a lock and publish a fresh mapping; readers use
    whichever mapping is current, so lookups never block.
    """

    def __init__(self, name: str = "local") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._hints: dict[int, tuple[Callable[..., Any], Hint]] = {}

    def register(self, fn: Callable[..., Any], hint: Hint | Mapping[str, Any]) -> Hint:
        name = callable_name(fn)
        try:
            if isinstance(hint, Hint):
                hint = hint.validate(name)
            else:
                hint = Hint.from_spec(hint, name)
        except InvalidHintError as exc:
            logger.warning("hint_invalid callable=%s code=%s slots=%s", name, exc.code, exc.slots)
            record_hint_error(exc.code)
            raise
        target = _identity_target(fn)
        with self._lock:
            updated = dict(self._hints)
            updated[id(target)] = (target, hint)
            self._hints = updated
            record_hints_registered(self.name, len(updated))
        logger.debug("hint_registered callable=%s slots=%s", name, hint.populated_slots())
        return hint

    def lookup(self, fn: Callable[..., Any]) -> Hint | None:
        entry = self._hints.get(id(_identity_target(fn)))
        if entry is None:
            return None
        return entry[1]

    def unregister(self, fn: Callable[..., Any]) -> bool:
        key = id(_identity_target(fn))
        with self._lock:
            if key not in self._hints:
                return False
            updated = dict(self._hints)
            del updated[key]
            self._hints = updated
            record_hints_registered(self.name, len(updated))
        return True

    def clear(self) -> None:
        with self._lock:
            self._hints = {}
            record_hints_registered(self.name, 0)

    def load_hints(self, provider: Any) -> list[Callable[..., Any]]:
        """Register every hint a provider declares through ``AUTOFAIL_HINTS()``.

        ``provider`` is a module, class or other object, or a dotted module
        path. Each key of the returned table names an attribute of the
        provider; all entries are validated before any is registered.
        """
        provider = _resolve_provider(provider)
        provider_name = getattr(provider, "__name__", provider.__class__.__name__)
        hook = getattr(provider, PROVIDER_HOOK, None)
        if not callable(hook):
            _fail_load("provider_invalid", provider_name)
        table = hook()
        if not isinstance(table, Mapping):
            _fail_load("provider_invalid", provider_name)

        staged: list[tuple[Callable[..., Any], Hint]] = []
        for attr, spec in table.items():
            target = getattr(provider, str(attr), None)
            if not callable(target):
                _fail_load("hint_target_missing", f"{provider_name}.{attr}")
            try:
                hint = Hint.from_spec(spec, f"{provider_name}.{attr}")
            except InvalidHintError as exc:
                record_hint_error(exc.code)
                logger.warning("hint_invalid callable=%s code=%s", exc.callable_name, exc.code)
                raise
            staged.append((target, hint))

        for target, hint in staged:
            self.register(target, hint)
        logger.info("hint_provider_loaded provider=%s count=%s", provider_name, len(staged))
        return [target for target, _ in staged]

    def names(self) -> list[str]:
        return sorted(callable_name(target) for target, _ in self._hints.values())

    def __contains__(self, fn: object) -> bool:
        return id(_identity_target(fn)) in self._hints

    def __len__(self) -> int:
        return len(self._hints)


default_registry = HintRegistry("default")


def set_hints_for(fn: Callable[..., Any], hint: Hint | Mapping[str, Any]) -> Hint:
    return default_registry.register(fn, hint)


def get_hints_for(fn: Callable[..., Any]) -> Hint | None:
    return default_registry.lookup(fn)


def load_hints(provider: Any) -> list[Callable[..., Any]]:
    return default_registry.load_hints(provider)


def load_configured_providers(registry: HintRegistry | None = None) -> int:
    if registry is None:
        registry = default_registry
    loaded = 0
    for name in _parse_csv(settings.hint_providers):
        loaded += len(registry.load_hints(name))
    return loaded


def callable_name(fn: Any) -> str:
    target = _identity_target(fn)
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None) or getattr(target, "__name__", None)
    if qualname is None:
        return repr(target)
    if module:
        return f"{module}.{qualname}"
    return qualname


def _identity_target(fn: Any) -> Any:
    # Bound methods are recreated on every attribute access.
    return getattr(fn, "__func__", fn)


def _resolve_provider(provider: Any) -> Any:
    if not isinstance(provider, str):
        return provider
    name = provider.strip()
    if not name:
        _fail_load("provider_invalid", provider)
    try:
        return importlib.import_module(name)
    except ModuleNotFoundError as exc:
        record_hint_error("provider_missing")
        logger.warning("hint_provider_missing provider=%s", name)
        raise HintLoadError("provider_missing") from exc


def _fail_load(code: str, subject: str) -> None:
    record_hint_error(code)
    logger.warning("hint_load_failed code=%s subject=%s", code, subject)
    raise HintLoadError(code)


def _parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [entry.strip() for entry in value.split(",") if entry.strip()]

