"""
Extension policy for error responses.

An options instance is built once while the application is assembled and is
then shared read-only by every request that passes through the middleware.
"""

import inspect
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

ExtensionFactory = Callable[[Request, Exception], Union[Any, Awaitable[Any]]]


def _encode_extension(value: Any) -> Any:
    """
    Encode an extension and check it renders as strict JSON.

    Raises:
        ValueError: If the encoded value holds NaN or infinity, or is otherwise
            rejected by json.dumps
    """
    encoded = jsonable_encoder(value)
    try:
        json.dumps(encoded, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Extension is not JSON serializable: {exc}") from exc
    return encoded


class ExtensionMode(str, Enum):
    """How the extension object of an error response is obtained."""

    DEFAULT = "default"
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class CustomExceptionOptions:
    """
    Caller-supplied policy for extending error response bodies.

    Exactly one of three modes applies:
    - DEFAULT: responses carry only ``type`` and ``error``
    - STATIC: ``custom_error_model`` is encoded once here and merged into every response
    - DYNAMIC: ``custom_error_model_factory(request, exc)`` is called once per handled
      failure. Coroutine functions are awaited; plain callables run in the thread
      pool and may therefore run concurrently for overlapping requests.
    """

    mode: ExtensionMode = ExtensionMode.DEFAULT
    custom_error_model: Any = None
    custom_error_model_factory: Optional[ExtensionFactory] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        mode = ExtensionMode(self.mode)
        has_model = self.custom_error_model is not None
        has_factory = self.custom_error_model_factory is not None

        if has_model and has_factory:
            raise ValueError("custom_error_model and custom_error_model_factory are mutually exclusive")
        if mode is ExtensionMode.DEFAULT:
            # Infer the mode from whichever field was supplied
            if has_model:
                mode = ExtensionMode.STATIC
            elif has_factory:
                mode = ExtensionMode.DYNAMIC
        object.__setattr__(self, "mode", mode)

        if mode is ExtensionMode.STATIC and not has_model:
            raise ValueError("STATIC mode requires custom_error_model")
        if mode is ExtensionMode.DYNAMIC:
            if not has_factory:
                raise ValueError("DYNAMIC mode requires custom_error_model_factory")
            if not callable(self.custom_error_model_factory):
                raise ValueError("custom_error_model_factory must be callable")

        if mode is ExtensionMode.STATIC:
            # Snapshot so later changes to the caller's object don't leak in
            object.__setattr__(self, "custom_error_model", _encode_extension(self.custom_error_model))

    @classmethod
    def default(cls) -> "CustomExceptionOptions":
        return cls()

    @classmethod
    def static(cls, custom_error_model: Any) -> "CustomExceptionOptions":
        return cls(mode=ExtensionMode.STATIC, custom_error_model=custom_error_model)

    @classmethod
    def dynamic(cls, factory: ExtensionFactory) -> "CustomExceptionOptions":
        return cls(mode=ExtensionMode.DYNAMIC, custom_error_model_factory=factory)

    @classmethod
    def from_value(cls, value: Any = None) -> "CustomExceptionOptions":
        """
        Build options from the value handed to the setup helper.

        None selects DEFAULT, an existing options instance is returned as is,
        a callable selects DYNAMIC and anything else selects STATIC. Classes
        are rejected: pass an instance for a fixed extension, or a function
        returning one for a per-failure extension.

        Raises:
            ValueError: If value is a class
        """
        if value is None:
            return cls.default()
        if isinstance(value, cls):
            return value
        if isinstance(value, type):
            raise ValueError(
                f"Expected an extension value or factory, got the class {value.__name__}"
            )
        if callable(value):
            return cls.dynamic(value)
        return cls.static(value)

    async def resolve_extension(self, request: Request, exc: Exception) -> Any:
        """
        Return the JSON-ready extension for one handled failure, or None.

        Errors raised by a dynamic factory, and ValueError for a result that
        cannot be rendered as JSON, propagate to the caller.
        """
        if self.mode is ExtensionMode.STATIC:
            return self.custom_error_model
        if self.mode is ExtensionMode.DEFAULT:
            return None

        factory = self.custom_error_model_factory
        if inspect.iscoroutinefunction(factory):
            value = await factory(request, exc)
        else:
            value = await run_in_threadpool(factory, request, exc)
            if inspect.isawaitable(value):
                value = await value

        if value is None:
            return None
        return _encode_extension(value)
