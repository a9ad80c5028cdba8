"""HTTP-aware error taxonomy raised from services and routers."""
from fastapi import HTTPException, status


class Unauthorized(HTTPException):
    """No authenticated actor."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class Forbidden(HTTPException):
    """Authenticated but not allowed to perform the action."""

    def __init__(self, detail: str = "Admin only"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Conflict(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class RequestNotPending(HTTPException):
    """Approve/reject attempted on a request that already reached a terminal state."""

    def __init__(self, status_value: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Request is already {status_value}",
        )


class ValidationFailed(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=422, detail=detail)


class MalformedPayload(ValidationFailed):
    """A stored request payload could not be parsed into its typed shape.

    The merge engine recovers from this by showing the live entity; the
    approval engine surfaces it because there is nothing sane to apply.
    """

    def __init__(self, request_id: str, reason: str):
        self.request_id = request_id
        self.reason = reason
        super().__init__(f"Request {request_id} has a malformed payload: {reason}")
