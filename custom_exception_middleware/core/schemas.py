"""
Pydantic schemas for error response bodies.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator
from starlette.requests import Request

from custom_exception_middleware.core.errors import DEFAULT_ERROR_MESSAGE, FailureCategory
from custom_exception_middleware.core.logging import get_logger
from custom_exception_middleware.core.options import CustomExceptionOptions

logger = get_logger(__name__)


class ErrorDetail(BaseModel):
    """Human-readable explanation of a failure."""

    msg: str = Field(..., description="Error message")

    @field_validator("msg")
    @classmethod
    def validate_msg(cls, v):
        """Never emit an empty message."""
        if not v or not v.strip():
            return DEFAULT_ERROR_MESSAGE
        return v


class CustomErrorResponse(BaseModel):
    """Error response schema."""

    type: str = Field(..., description="Coarse-grained error tag")
    error: ErrorDetail = Field(..., description="Error detail")
    extension: Optional[Any] = Field(
        None, description="Caller-supplied fields merged into the serialized body"
    )

    def to_payload(self) -> Dict[str, Any]:
        """
        Return the wire representation of the body.

        Mapping extensions are merged at the top level and win on key
        conflicts; any other extension value is kept under "extension".
        """
        payload = self.model_dump(exclude={"extension"})
        if self.extension is None:
            return payload
        if isinstance(self.extension, dict):
            payload.update(self.extension)
        else:
            payload["extension"] = self.extension
        return payload


async def build_body(
    category: FailureCategory,
    message: str,
    options: CustomExceptionOptions,
    request: Request,
    exc: Exception,
) -> CustomErrorResponse:
    """
    Assemble the error body for a classified failure.

    Args:
        category: Category returned by the classifier
        message: Message returned by the classifier
        options: Extension policy of the middleware instance
        request: The request being handled
        exc: The caught fault, passed to dynamic extension factories

    Returns:
        The populated response model (not yet serialized)
    """
    try:
        extension = await options.resolve_extension(request, exc)
    except Exception as factory_exc:
        logger.bind(path=request.url.path, error=str(factory_exc)).warning(
            f"Error extension factory failed, responding without extension: {factory_exc!r}"
        )
        extension = None

    return CustomErrorResponse(
        type=category.error_type,
        error=ErrorDetail(msg=message),
        extension=extension,
    )
