"""Errors raised by the console's resource client and form validation.

Screens and controllers catch `ConsoleError` and turn it into a display
string; nothing below them lets one escape unhandled.
"""


class ConsoleError(Exception):
    default_message = "Something went wrong."

    def __init__(self, message=None, status=None, payload=None):
        self.message = message or self.default_message
        self.status = status
        self.payload = payload if payload is not None else {}
        super().__init__(self.message)


class ValidationError(ConsoleError):
    """Client-side form validation failed; `errors` maps field -> message."""

    default_message = "Please fix the highlighted fields."

    def __init__(self, errors, message=None):
        self.errors = dict(errors)
        super().__init__(message, payload=self.errors)


class AuthError(ConsoleError):
    default_message = "Your session has expired. Please sign in again."


class NotFoundError(ConsoleError):
    default_message = "Not found."


class ServerError(ConsoleError):
    default_message = "The server rejected the request."

    @property
    def field_errors(self):
        """Field-scoped messages from a DRF validation body, if any."""
        errors = {}
        if not isinstance(self.payload, dict):
            return errors
        for field, value in self.payload.items():
            if field in ("message", "error", "detail"):
                continue
            if isinstance(value, list) and value and isinstance(value[0], str):
                errors[field] = value[0]
            elif isinstance(value, str):
                errors[field] = value
        return errors


class NetworkError(ConsoleError):
    default_message = "Network error"
