"""Service-level errors and request body validation."""
from __future__ import annotations

import re

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ServiceError(Exception):
    """An error that maps directly onto an HTTP response.

    ``result_code`` is a string like ``"404"`` or ``"400-1"``; the part
    before the first dash is the HTTP status.
    """

    def __init__(self, result_code: str, msg: str):
        super().__init__(msg)
        self.result_code = result_code
        self.msg = msg

    @property
    def status_code(self) -> int:
        return int(self.result_code.split("-", 1)[0])


class InvalidLevelError(ServiceError):
    def __init__(self, msg: str):
        super().__init__("400", msg)


class InsufficientDataError(ServiceError):
    def __init__(self, msg: str):
        super().__init__("400", msg)


class DistractorShortageError(ServiceError):
    def __init__(self, msg: str):
        super().__init__("500", msg)


class FieldErrors:
    """Collect ``field-Code-message`` entries and raise them as one 400."""

    def __init__(self, body: dict):
        self.body = body if isinstance(body, dict) else {}
        self.errors: list[str] = []

    def add(self, field: str, code: str, message: str) -> None:
        self.errors.append(f"{field}-{code}-{message}")

    def text(self, field: str, message: str, *, required: bool = True,
             min_len: int | None = None, max_len: int | None = None,
             size_message: str | None = None) -> str | None:
        value = self.body.get(field)
        if value is not None and not isinstance(value, str):
            self.add(field, "TypeMismatch", f"{field} must be a string")
            return None
        if value is None or not value.strip():
            if required:
                self.add(field, "NotBlank", message)
            return value
        too_short = min_len is not None and len(value) < min_len
        too_long = max_len is not None and len(value) > max_len
        if too_short or too_long:
            self.add(field, "Size", size_message or message)
        return value

    def email(self, field: str, message: str, invalid_message: str,
              max_len: int | None = None) -> str | None:
        value = self.text(field, message, max_len=max_len,
                          size_message=f"Email must not exceed {max_len} characters")
        if value and value.strip() and not EMAIL_RE.match(value.strip()):
            self.add(field, "Email", invalid_message)
        return value

    def boolean(self, field: str, message: str) -> bool | None:
        value = self.body.get(field)
        if not isinstance(value, bool):
            self.add(field, "NotNull", message)
            return None
        return value

    def check(self) -> None:
        if self.errors:
            raise ServiceError("400", "\n".join(sorted(self.errors)))
