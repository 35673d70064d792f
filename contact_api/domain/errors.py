"""Exceptions shared by the pure domain helpers."""


class InvalidArgumentError(ValueError):
    """Raised when a caller supplies a malformed value (prefix, code, enum member...)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
