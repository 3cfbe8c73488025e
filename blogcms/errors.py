from __future__ import annotations

__all__ = (
    "BlogCMSError",
    "Cancelled",
    "ConstraintViolation",
    "ContentEmpty",
    "DeadlineExceeded",
    "EditorError",
    "EditorUnavailable",
    "FormCancelled",
    "IdentifierError",
    "NotFound",
    "StoreError",
    "StoreUnavailable",
    "ValidationError",
)


class BlogCMSError(Exception):
    """The root of all errors raised by blogcms.

    Every error records the ``operation`` which raised it, so the message a user
    sees names what we were trying to do when things went wrong.
    """

    default_message = "unexpected error"

    def __init__(self, message: str | None = None, *, operation: str | None = None):
        self.message = message or self.default_message
        self.operation = operation
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message

    def with_operation(self, operation: str) -> BlogCMSError:
        """Tag this error with an operation name, if it hasn't been tagged yet."""
        if self.operation is None:
            self.operation = operation
        return self


class StoreError(BlogCMSError):
    default_message = "store error"


class NotFound(StoreError):
    default_message = "post not found"


class ConstraintViolation(StoreError):
    default_message = "constraint violated"


class StoreUnavailable(StoreError):
    default_message = "store unavailable"


class Cancelled(StoreError):
    default_message = "operation cancelled"


class DeadlineExceeded(StoreError):
    default_message = "deadline exceeded"


class ValidationError(BlogCMSError):
    default_message = "invalid input"


class IdentifierError(ValidationError):
    default_message = "exactly one of id or slug must be provided"


class EditorError(BlogCMSError):
    default_message = "editor failed"


class EditorUnavailable(EditorError):
    default_message = "editor not available"


class ContentEmpty(EditorError):
    default_message = "content cannot be empty when using editor"


class FormCancelled(BlogCMSError):
    default_message = "user cancelled the operation"
