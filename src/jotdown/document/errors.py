"""Exceptions raised by the document model and its collaborators."""

from __future__ import annotations


class DocumentError(RuntimeError):
    """Base class for line-unit invariant violations."""

    def __init__(self, message: str, *, unit_id: str | None = None) -> None:
        super().__init__(message)
        self.unit_id = unit_id


class NotFound(DocumentError):
    """Raised when an operation references a line unit id that is not present."""

    def __init__(self, unit_id: str) -> None:
        super().__init__(f"Line unit '{unit_id}' not found", unit_id=unit_id)


class LastUnitGuard(DocumentError):
    """Raised when an operation would remove the final line unit."""

    def __init__(self, unit_id: str) -> None:
        super().__init__(
            f"Refusing to remove '{unit_id}': a document keeps at least one line",
            unit_id=unit_id,
        )


class PersistenceFailure(RuntimeError):
    """Raised by stores when loading or saving the serialized document fails."""

    def __init__(
        self, message: str, *, operation: str, target: str | None = None
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.target = target


__all__ = ["DocumentError", "NotFound", "LastUnitGuard", "PersistenceFailure"]
