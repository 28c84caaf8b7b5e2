"""Error types raised while resolving and parsing modules."""


class LoaderError(Exception):
    """Base class for expected loader failures."""


class ResolutionError(LoaderError):
    """A specifier could not be mapped to a file."""

    def __init__(self, request: str, from_dir: str, reason: str = ""):
        self.request = request
        self.from_dir = from_dir
        self.reason = reason
        message = f"Can't resolve '{request}' in '{from_dir}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ParseError(LoaderError):
    """Source text could not be parsed for dependencies."""

    def __init__(self, message: str, path: str = "", line: int = 0, column: int = 0):
        self.path = path
        self.line = line
        self.column = column
        self.message = message
        super().__init__(message)

    def with_path(self, path: str) -> "ParseError":
        """Return a copy of the error attributed to a file."""
        return ParseError(self.message, path, self.line, self.column)

    def __str__(self) -> str:
        location = f"({self.line}:{self.column})" if self.line else ""
        return f"{self.message} {location}".strip()
