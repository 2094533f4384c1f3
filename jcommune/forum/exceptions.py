from __future__ import annotations


class NotFound(LookupError):
    """Raised when a requested forum entity does not exist or is no longer visible."""

    def __init__(self, message: str, *, entity: str = "", identifier: object = None) -> None:
        super().__init__(message)
        self.entity = entity
        self.identifier = identifier
