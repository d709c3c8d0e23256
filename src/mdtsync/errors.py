"""Exception types shared across the scan, parse, and sync pipeline."""

from __future__ import annotations


class MdtError(Exception):
    """Base class for failures raised by the mdtsync core."""

    code = "MDT_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidTokenSequenceError(MdtError):
    """Raised when text starts a tag but does not form a well-formed tag."""

    code = "INVALID_TOKEN_SEQUENCE"

    def __init__(self, offset: int, message: str) -> None:
        super().__init__(message)
        self.offset = offset


class ParseError(MdtError):
    """Raised by strict parsing when a file contains malformed block syntax."""

    def __init__(self, code: str, message: str, offset: int, name: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.offset = offset
        self.name = name


class TransformerError(MdtError):
    """Raised when a transformer is unknown or receives invalid arguments."""

    code = "INVALID_TRANSFORMER_ARGS"

    def __init__(self, name: str, message: str, *, unknown: bool = False) -> None:
        super().__init__(message)
        self.name = name
        if unknown:
            self.code = "UNKNOWN_TRANSFORMER"


class RenderError(MdtError):
    """Raised when provider content cannot be rendered against the data context."""

    code = "RENDER_ERROR"


class ProjectRootError(MdtError):
    """Raised when the project root cannot be read at all."""

    code = "PROJECT_ROOT_UNREADABLE"

