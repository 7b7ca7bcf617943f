"""
Middleware converting unhandled request faults into JSON error responses.
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from custom_exception_middleware.core.errors import classify
from custom_exception_middleware.core.logging import get_logger
from custom_exception_middleware.core.options import CustomExceptionOptions
from custom_exception_middleware.core.schemas import build_body

logger = get_logger(__name__)


class CustomExceptionMiddleware:
    """
    Catch faults raised by downstream handling and answer with a JSON body.

    Successful responses pass through untouched. A fault raised before the
    response started is classified and answered with the category's status
    code; a fault raised after the response started is re-raised, since the
    status line and headers are already on the wire.

    Each instance owns its options, so the middleware can be mounted several
    times (e.g. on mounted sub-applications) with different policies.
    """

    def __init__(self, app: ASGIApp, options: Optional[CustomExceptionOptions] = None) -> None:
        self.app = app
        self.options = options if options is not None else CustomExceptionOptions()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                logger.bind(path=scope.get("path"), error=str(exc)).warning(
                    "Response already started, propagating fault to outer handler"
                )
                raise

            request = Request(scope, receive=receive)
            category, message = classify(exc)
            body = await build_body(category, message, self.options, request, exc)
            response = JSONResponse(status_code=category.status_code, content=body.to_payload())
            await response(scope, receive, send)


def use_custom_exception_middleware(app: Any, options: Any = None) -> None:
    """
    Mount CustomExceptionMiddleware on a FastAPI/Starlette application.

    Args:
        app: Application to mount on (must not have started yet)
        options: None for default bodies, a CustomExceptionOptions instance,
            a callable ``(request, exc) -> extension`` computed per failure,
            or any other value used as a fixed extension for every response
    """
    app.add_middleware(
        CustomExceptionMiddleware,
        options=CustomExceptionOptions.from_value(options),
    )
