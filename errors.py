class AppError(Exception):
    status_code = 500
    message = "Unexpected error"

    def __init__(self, message=None, errors=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors

    def to_dict(self):
        body = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    status_code = 400
    message = "Invalid input"


class ConflictError(AppError):
    status_code = 400
    message = "Already exists"


class InvalidTransitionError(AppError):
    status_code = 400
    message = "Report status cannot be changed"


class AuthRequiredError(AppError):
    status_code = 401
    message = "Authentication required"


class InvalidCredentialsError(AppError):
    status_code = 401
    message = "Invalid credentials"


class ForbiddenError(AppError):
    status_code = 403
    message = "Admin access required"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class UnexpectedError(AppError):
    status_code = 500
