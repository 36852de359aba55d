from __future__ import annotations

import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Sequence, Set, TypeVar, cast

import numpy as np

from .model import Constraint, ConstraintEntity

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxdict = 8
_repr.maxlist = 8
_repr.maxtuple = 8
_repr.maxstring = 80


def _summarize_array(value: np.ndarray, max_items: int) -> str:
    head = f"ndarray(shape={tuple(value.shape)}, dtype={value.dtype}"
    if value.size == 0:
        return head + ")"
    if value.size <= max_items:
        return head + f", values={_repr.repr(value.tolist())})"
    if not np.issubdtype(value.dtype, np.number):
        return head + ")"
    finite = value[np.isfinite(value)]
    if finite.size == 0:
        return head + ", all non-finite)"
    return head + f", min={float(finite.min()):.6g}, max={float(finite.max()):.6g})"


def _safe_repr(value: Any, *, max_items: int = 6, max_length: int = 300) -> str:
    if isinstance(value, np.ndarray):
        return _summarize_array(value, max_items)
    if isinstance(value, ConstraintEntity):
        return f"<{value.kind.value} {value.id!r} pos={value.position} params={len(value.parameters)}>"
    if isinstance(value, Constraint):
        state = "" if value.active else " inactive"
        return f"<{value.type.value} {value.id!r} on {list(value.entities)}{state}>"
    if isinstance(value, dict):
        items = []
        for idx, (key, item) in enumerate(value.items()):
            if idx >= max_items:
                items.append(f"... ({len(value)} total)")
                break
            items.append(f"{_safe_repr(key)}: {_safe_repr(item)}")
        return "{" + ", ".join(items) + "}"
    if isinstance(value, (list, tuple)) and not hasattr(value, "_fields"):
        opening, closing = ("(", ")") if isinstance(value, tuple) else ("[", "]")
        shown = [_safe_repr(item) for item in value[:max_items]]
        if len(value) > max_items:
            shown.append(f"... ({len(value)} total)")
        return opening + ", ".join(shown) + closing

    try:
        rendered = _repr.repr(value)
    except Exception as exc:  # pragma: no cover - broken __repr__ on caller objects
        rendered = f"<repr-error {exc!r}>"
    if len(rendered) > max_length:
        return rendered[:max_length] + "..."
    return rendered


def _format_call(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = [_safe_repr(arg) for arg in args]
    parts.extend(f"{key}={_safe_repr(value)}" for key, value in kwargs.items())
    return ", ".join(parts) if parts else "no-args"


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that logs entry, exit and exceptions at DEBUG level."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func

        qualname = name or getattr(func, "__qualname__", getattr(func, "__name__", "<callable>"))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("-> %s(%s)", qualname, _format_call(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.debug("!! %s raised", qualname, exc_info=True)
                raise
            if log_result:
                logger.debug("<- %s = %s", qualname, _safe_repr(result))
            else:
                logger.debug("<- %s", qualname)
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def _wrap_class(cls: type, logger: logging.Logger, skip: Set[str]) -> None:
    for attr_name, attr_value in list(cls.__dict__.items()):
        if attr_name.startswith("__") and attr_name.endswith("__"):
            continue
        qualified = f"{cls.__name__}.{attr_name}"
        if attr_name in skip or qualified in skip:
            continue
        if isinstance(attr_value, (staticmethod, classmethod)):
            func = attr_value.__func__
            if getattr(func, "__module__", None) != cls.__module__:
                continue
            wrapped = debug_log_call(logger, name=qualified)(func)
            setattr(cls, attr_name, type(attr_value)(wrapped))
        elif inspect.isfunction(attr_value) and getattr(attr_value, "__module__", None) == cls.__module__:
            setattr(cls, attr_name, debug_log_call(logger, name=qualified)(attr_value))


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
    wrap_methods: bool = True,
) -> None:
    """Wrap the functions and classes defined in ``namespace`` with DEBUG call logging.

    Intended to be called at the bottom of a module as
    ``apply_debug_logging(globals(), logger=logger)``. Names in ``skip`` (plain
    or ``Class.method``) are left untouched, which keeps hot inner loops cheap.
    """

    module_name = namespace.get("__name__")
    if not isinstance(module_name, str):  # pragma: no cover - exec'd namespaces
        module_name = None
    logger = logger or logging.getLogger(module_name or __name__)
    skip_set: Set[str] = set(skip or [])

    for name, value in list(namespace.items()):
        if name in skip_set:
            continue
        if inspect.isfunction(value) and getattr(value, "__module__", None) == module_name:
            namespace[name] = debug_log_call(logger, name=name)(value)
        elif wrap_methods and inspect.isclass(value) and getattr(value, "__module__", None) == module_name:
            _wrap_class(value, logger, skip_set)


__all__ = ["apply_debug_logging", "debug_log_call"]
