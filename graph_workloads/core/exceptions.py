"""
Exception handling for the core module.

Every failure of the resource layer is normalized into a ClassifiedError
carrying one of a closed set of kinds and the label of the operation that
was attempted, so a user-facing message can always say what went wrong.
"""

import enum
import json
import logging

import sentry_sdk
from aiohttp import web

logger = logging.getLogger(__name__)


class ErrorKind(enum.Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    RATE_LIMIT = "rate_limit"
    UNKNOWN = "unknown"


MESSAGES = {
    ErrorKind.AUTH: "Authentication required. Please sign in to perform {context}.",
    ErrorKind.FORBIDDEN: "Access denied. Please ensure you have the required permissions for {context}.",
    ErrorKind.NOT_FOUND: "Resource not found. Please check the ID provided for {context}.",
    ErrorKind.BAD_REQUEST: "Invalid request. Please check the data provided for {context}.",
    ErrorKind.RATE_LIMIT: "Rate limit exceeded. Please try again later for {context}.",
}

STATUS_KINDS = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.AUTH,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMIT,
}

CODE_KINDS = {
    "BadRequest": ErrorKind.BAD_REQUEST,
    "ErrorInvalidRequest": ErrorKind.BAD_REQUEST,
    "Unauthorized": ErrorKind.AUTH,
    "InvalidAuthenticationToken": ErrorKind.AUTH,
    "Forbidden": ErrorKind.FORBIDDEN,
    "ErrorAccessDenied": ErrorKind.FORBIDDEN,
    "NotFound": ErrorKind.NOT_FOUND,
    "ErrorItemNotFound": ErrorKind.NOT_FOUND,
    "TooManyRequests": ErrorKind.RATE_LIMIT,
}

# status returned by the action surface for each kind
HTTP_STATUSES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.UNKNOWN: 502,
}


class ClassifiedError(Exception):
    """A failure normalized to an ErrorKind plus the attempted operation."""

    def __init__(
        self,
        kind: ErrorKind,
        context: str,
        detail: str | None = None,
        cause: BaseException | None = None,
        status: int | None = None,
        code: str | None = None,
        retry_after: str | None = None,
    ) -> None:
        self.kind = kind
        self.context = context
        self.detail = detail
        self.cause = cause
        self.status = status
        self.code = code
        self.retry_after = retry_after
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.kind is ErrorKind.VALIDATION:
            return f"Invalid input for {self.context}: {self.detail}"
        if self.kind is ErrorKind.UNKNOWN:
            return f"Failed to {self.context}: {self.detail or 'Unknown error'}"
        return MESSAGES[self.kind].format(context=self.context)


def validation_error(context: str, detail: str) -> ClassifiedError:
    return ClassifiedError(ErrorKind.VALIDATION, context, detail=detail)


def classify(status: int | None, code: str | None) -> ErrorKind:
    """Map a remote status (first) or error code (fallback) to an ErrorKind."""
    if status in STATUS_KINDS:
        return STATUS_KINDS[status]
    if code in CODE_KINDS:
        return CODE_KINDS[code]
    return ErrorKind.UNKNOWN


def parse_error_body(body) -> tuple[str | None, str | None]:
    """Extract (code, message) from a remote error payload.

    Remote errors look like {"error": {"code": "...", "message": "..."}}, but
    proxies and gateways may answer with anything, including plain text.
    """
    if isinstance(body, (bytes, str)):
        try:
            body = json.loads(body)
        except ValueError:
            text = body.decode(errors="replace") if isinstance(body, bytes) else body
            return None, text.strip() or None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("code"), error.get("message")
        if isinstance(error, str):
            return error, body.get("message")
    return None, None


def handle_exception(
    status: int | None,
    context: str,
    body=None,
    cause: BaseException | None = None,
    retry_after: str | None = None,
):
    """Classify a failed remote interaction and raise it as a ClassifiedError."""
    code, detail = parse_error_body(body) if body is not None else (None, None)
    if detail is None and cause is not None:
        detail = str(cause) or type(cause).__name__
    kind = classify(status, code)
    error = ClassifiedError(
        kind,
        context,
        detail=detail,
        cause=cause,
        status=status,
        code=code,
        retry_after=retry_after if kind is ErrorKind.RATE_LIMIT else None,
    )
    if kind is ErrorKind.UNKNOWN:
        logger.error("%s (status=%s, code=%s)", error.message, status, code)
        if sentry_sdk.get_client().is_active():
            with sentry_sdk.new_scope() as scope:
                scope.set_tags({"kind": kind.value, "status": status, "context": context})
                scope.set_extra("detail", detail)
                sentry_sdk.capture_exception(cause or error)
    else:
        logger.warning("%s (status=%s, code=%s)", error.message, status, code)
    raise error


class QueryException(web.HTTPException):
    """Re-raise a classified error as aiohttp exception"""

    def __init__(self, status, error_code, title, detail) -> None:
        self.status_code = status
        error_body = {"errors": [{"code": error_code, "title": title, "detail": detail}]}
        super().__init__(content_type="application/json", text=json.dumps(error_body))


def to_http_exception(error: ClassifiedError) -> QueryException:
    exc = QueryException(
        HTTP_STATUSES[error.kind], error.code or error.kind.value, error.context, error.message
    )
    if error.retry_after:
        exc.headers["Retry-After"] = error.retry_after
    return exc


@web.middleware
async def classified_error_middleware(request, handler):
    """Render ClassifiedError raised by a handler as a JSON error response."""
    try:
        return await handler(request)
    except ClassifiedError as e:
        raise to_http_exception(e) from e
