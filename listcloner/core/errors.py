class CloneError(Exception):
    """Base exception for list clone errors."""
    pass


class ValidationError(CloneError):
    pass


class AuthError(CloneError):
    pass


class ResolutionError(CloneError):
    pass


class JobNotFoundError(CloneError):
    def __init__(self, job_id):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class AtprotoError(CloneError):
    """An XRPC call answered with a non-2xx status."""

    def __init__(self, status_code: int, error: str | None, message: str | None):
        self.status_code = status_code
        self.error = error or "UnknownError"
        self.message = message or ""
        super().__init__(self.message or self.error)
