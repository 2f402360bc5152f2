"""Custom exceptions for depcheck."""


class DepcheckError(Exception):
    """Base exception for all depcheck errors."""


class NotFoundError(DepcheckError):
    """Raised when the project directory does not exist or is not a directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Project path not found: {path}")


class ManifestError(DepcheckError):
    """Raised when package.json exists but cannot be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read package json from {path}: {reason}")


class ConfigError(DepcheckError):
    """Raised when options or a config file are invalid."""


class ParseError(DepcheckError):
    """Raised by an extractor when a single source file fails to parse.

    Never escapes :func:`depcheck.checker.depcheck`; it is turned into a
    :class:`~depcheck.models.FileParseWarning`.
    """

    def __init__(self, file: str, message: str, line: int | None = None):
        self.file = file
        self.message = message
        self.line = line
        location = f"{file}:{line}" if line is not None else file
        super().__init__(f"{location}: {message}")
