from __future__ import annotations


class AppError(Exception):
    """Base error for expected failures."""

    def __init__(self, message: str, *, http_status: int = 400, code: str = "BAD_REQUEST"):
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.code = code


class AuthError(AppError):
    def __init__(self, message: str = "authentication required", *, code: str = "UNAUTHORIZED"):
        super().__init__(message, http_status=401, code=code)


class ForbiddenError(AppError):
    def __init__(self, message: str = "insufficient permissions", *, code: str = "INSUFFICIENT_PERMISSIONS"):
        super().__init__(message, http_status=403, code=code)


class BadRequestError(AppError):
    def __init__(self, message: str = "bad request", *, code: str = "BAD_REQUEST"):
        super().__init__(message, http_status=400, code=code)


class PermissionCheckError(AppError):
    def __init__(self, message: str = "permission check failed"):
        super().__init__(message, http_status=500, code="PERMISSION_CHECK_ERROR")
