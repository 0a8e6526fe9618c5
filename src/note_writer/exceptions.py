"""Exceptions raised by the article workflows."""


class NoteWriterError(Exception):
    """Base exception for all workflow errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class MissingInputError(NoteWriterError):
    """Raised when a required identifier, token or setting is absent."""

    pass


class UpstreamError(NoteWriterError):
    """Raised when GitHub or the generation service returns a failure."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload=None,
        *args,
        **kwargs,
    ):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message, *args, **kwargs)


class GenerationError(UpstreamError):
    """Raised when a generation response carries no usable text."""

    pass


class NoArticleFoundError(NoteWriterError):
    """Raised when no persisted article exists where one is expected."""

    pass
