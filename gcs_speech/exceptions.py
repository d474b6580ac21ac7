"""Custom exceptions for the transcription function."""

from typing import Optional


class TranscriptionPipelineError(Exception):
    """Base class for errors raised while handling a storage event."""


class MissingFieldError(TranscriptionPipelineError):
    """Raised when the storage event lacks a mandatory field."""

    def __init__(self, field: str, description: Optional[str] = None):
        self.field = field
        super().__init__(f"{description or field} is missing")


class InvalidParameterError(TranscriptionPipelineError):
    """Raised when object metadata cannot be turned into a recognition parameter."""

    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value
        super().__init__(f"Invalid value for metadata '{key}': {value!r}")


class RecognitionStartError(TranscriptionPipelineError):
    """Raised when the recognition job could not be started."""

    def __init__(self, uri: str, cause: Optional[Exception] = None):
        self.uri = uri
        self.cause = cause
        super().__init__(f"Failed to start recognition for '{uri}'")


class RecognitionJobError(TranscriptionPipelineError):
    """Raised when a started recognition job fails or cannot be awaited."""

    def __init__(self, uri: str, cause: Optional[Exception] = None):
        self.uri = uri
        self.cause = cause
        super().__init__(f"Recognition job failed for '{uri}'")
