"""
Callback shapes and hook results used by the client.

User supplied callables come in a few shapes. They are resolved once, when
the configuration is built, into the small classes below so that the
pipeline never has to guess how to call them.
"""

import inspect
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type, Union


class OneArgAsyncCallback:
    """
    Async dispatch callback accepting only the event.
    """

    arity = 1

    def __init__(self, func: Callable[[Any], Any]):
        self.func = func

    def __call__(self, event: Any, hint: Optional[Dict[str, Any]] = None) -> Any:
        return self.func(event)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.func == self.func

    def __hash__(self) -> int:
        return hash((type(self), self.func))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.func!r})"


class TwoArgAsyncCallback(OneArgAsyncCallback):
    """
    Async dispatch callback accepting the event and the hint.
    """

    arity = 2

    def __call__(self, event: Any, hint: Optional[Dict[str, Any]] = None) -> Any:
        return self.func(event, hint)


AsyncCallback = Union[OneArgAsyncCallback, TwoArgAsyncCallback]


def _positional_arity(func: Callable[..., Any]) -> int:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # builtins and some C callables can't be introspected
        return 2

    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return 2
        if parameter.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1

    return count


def resolve_async_callback(func: Any) -> Optional[AsyncCallback]:
    """
    Turn a user supplied async dispatch callable into a callback shape.

    Args:
        func: None, an already resolved callback, or any callable taking
            ``(event)`` or ``(event, hint)``.

    Returns:
        Optional[AsyncCallback]: The resolved callback, None when disabled.

    Raises:
        ValueError: If ``func`` is not callable or takes no argument.
    """
    if func is None or isinstance(func, OneArgAsyncCallback):
        return func

    if not callable(func):
        raise ValueError(f"async_dispatch must be callable, got {type(func).__name__}")

    arity = _positional_arity(func)
    if arity == 0:
        raise ValueError("async_dispatch must accept the event as first argument")
    if arity == 1:
        return OneArgAsyncCallback(func)
    return TwoArgAsyncCallback(func)


class Unchanged:
    """
    The hook returned an event of the expected type.
    """

    __slots__ = ("event",)

    def __init__(self, event: Any):
        self.event = event

    def __repr__(self) -> str:
        return f"Unchanged({self.event!r})"


class Discarded:
    """
    The hook dropped the event, ``returned`` is the type it gave back.
    """

    __slots__ = ("returned",)

    def __init__(self, returned: Type[Any]):
        self.returned = returned

    def __repr__(self) -> str:
        return f"Discarded({self.returned.__name__})"


class LegacyRaw:
    """
    The hook returned a plain mapping, which is still accepted (and sent as
    is) for backward compatibility.
    """

    __slots__ = ("payload",)

    def __init__(self, payload: Mapping[str, Any]):
        self.payload = payload

    def __repr__(self) -> str:
        return f"LegacyRaw({self.payload!r})"


BeforeSendResult = Union[Unchanged, Discarded, LegacyRaw]


def resolve_before_send_result(
    result: Any, expected: Tuple[Type[Any], ...]
) -> BeforeSendResult:
    """
    Classify what a before-send hook returned.

    Args:
        result: The hook's return value.
        expected: Event classes accepted as a regular return value.

    Returns:
        BeforeSendResult: The tagged result.
    """
    if isinstance(result, expected):
        return Unchanged(result)
    if isinstance(result, Mapping):
        return LegacyRaw(result)
    return Discarded(type(result))
