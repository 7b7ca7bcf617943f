"""
Failure taxonomy and fault classification.

Every fault caught by the middleware maps to exactly one ``FailureCategory``.
The four taxonomy exceptions below are what request handlers raise to pick a
client-facing status code; anything else is treated as unexpected.
"""

from enum import Enum
from typing import Optional, Tuple

from fastapi import status

VALIDATION_ERRORS = "VALIDATION_ERRORS"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred."


class FailureCategory(Enum):
    """Closed set of failure categories with their default status and tag."""

    DOMAIN = (status.HTTP_400_BAD_REQUEST, VALIDATION_ERRORS)
    ACCESS_DENIED = (status.HTTP_403_FORBIDDEN, VALIDATION_ERRORS)
    NOT_FOUND = (status.HTTP_404_NOT_FOUND, VALIDATION_ERRORS)
    UNAUTHORIZED = (status.HTTP_401_UNAUTHORIZED, VALIDATION_ERRORS)
    UNCLASSIFIED = (status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR)

    @property
    def status_code(self) -> int:
        return self.value[0]

    @property
    def error_type(self) -> str:
        return self.value[1]


# First match wins when a fault type claims more than one category
CATEGORY_PRECEDENCE = (
    FailureCategory.DOMAIN,
    FailureCategory.ACCESS_DENIED,
    FailureCategory.NOT_FOUND,
    FailureCategory.UNAUTHORIZED,
)


class InternalConsistencyError(RuntimeError):
    """Raised when the classifier is called outside its contract."""


class CustomException(Exception):
    """Base class for faults that map to a client-facing category."""

    category: Optional[FailureCategory] = None

    def __init__(self, message: Optional[str] = None) -> None:
        args = (message,) if message is not None else ()
        super().__init__(*args)
        self.message = message


class DomainException(CustomException):
    """A business rule was violated (400)."""

    category = FailureCategory.DOMAIN


class CannotAccessException(CustomException):
    """The caller is not allowed to access the resource (403)."""

    category = FailureCategory.ACCESS_DENIED


class NotFoundException(CustomException):
    """The requested resource does not exist (404)."""

    category = FailureCategory.NOT_FOUND


class UnauthorizedException(CustomException):
    """The caller is not authenticated (401)."""

    category = FailureCategory.UNAUTHORIZED


def _declared_categories(fault_type: type) -> set:
    return {
        vars(klass)["category"]
        for klass in fault_type.__mro__
        if isinstance(vars(klass).get("category"), FailureCategory)
    }


def _extract_message(fault: BaseException) -> str:
    if isinstance(fault, CustomException):
        message = "" if fault.message is None else str(fault.message)
    else:
        message = str(fault)
    if not message or not message.strip():
        return DEFAULT_ERROR_MESSAGE
    return message


def classify(fault: BaseException) -> Tuple[FailureCategory, str]:
    """
    Map a caught fault to its failure category and client-facing message.

    Args:
        fault: The exception raised by downstream request handling

    Returns:
        Tuple of (category, message). The message is the fault's own text,
        or DEFAULT_ERROR_MESSAGE when the fault carries none.

    Raises:
        InternalConsistencyError: If called without a fault
    """
    if fault is None:
        raise InternalConsistencyError("classify() requires the caught fault, got None")

    declared = _declared_categories(type(fault))
    category = next(
        (candidate for candidate in CATEGORY_PRECEDENCE if candidate in declared),
        FailureCategory.UNCLASSIFIED,
    )
    return category, _extract_message(fault)
