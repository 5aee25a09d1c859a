# error taxonomy shared by the execute path and the polling trigger.

#   DenoDeployError      → anything the adapter surfaces to the host; carries a message only
#   ValidationError      → bad parameters, raised before any network call
#   DenoDeployApiError   → non-2xx response; keeps the API's code, HTTP status and headers
#
# Rate limiting is not its own class: a 429 is a DenoDeployApiError whose
# status the retry wrapper recognises.

from typing import Any, Mapping


class DenoDeployError(Exception):

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DenoDeployError):
    pass


class DenoDeployApiError(DenoDeployError):
    """
    Raised for every non-2xx response from the Deno Deploy API.

    `code` is the API's own error code (e.g. "projectNotFound") when the body
    had one; `headers` is kept so callers can read `retry-after`.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status
        self.headers: dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}

    def retry_after_ms(self) -> int | None:
        """Server-supplied retry hint in milliseconds, if it is a whole number of seconds."""
        value = self.headers.get("retry-after")
        if value is None:
            return None
        try:
            return int(value) * 1000
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": self.message}
        if self.code is not None:
            data["code"] = self.code
        if self.status is not None:
            data["status"] = self.status
        return data

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"
