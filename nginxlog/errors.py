"""
Exception hierarchy for log format compilation, matching and record access.
"""

import re
from typing import Optional


class NginxLogError(Exception):
    """Base error for this package."""


class FieldNotFound(NginxLogError, KeyError):
    """Raised when a requested field is absent from a record."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(field)

    def __str__(self) -> str:
        return f"field '{self.field}' not found"


class FieldParseError(NginxLogError, ValueError):
    """Raised when a field value cannot be converted to the requested type."""

    def __init__(self, field: str, value: str, target_type: str):
        self.field = field
        self.value = value
        self.target_type = target_type
        super().__init__(f"field '{field}' with value '{value}' cannot be parsed as {target_type}")


class LineFormatMismatch(NginxLogError):
    """Raised when a log line does not satisfy the compiled format."""

    def __init__(self, line: str, format: str):
        self.line = line
        self.format = format
        super().__init__(f"log line '{line}' does not match format '{format}'")


class InvalidFormat(NginxLogError):
    """Raised when a format string compiles to an unusable regular expression."""

    def __init__(self, format: str, error: Optional[re.error] = None):
        self.format = format
        self.error = error
        message = f"invalid format string '{format}'"
        if error is not None:
            message += f": {error}"
        super().__init__(message)


class TemplateNotFound(NginxLogError):
    """Raised when a named log_format directive is absent from the configuration."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"log format '{name}' not found in nginx configuration")


class ConfigParseError(NginxLogError):
    """Raised when the nginx configuration is structurally malformed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"failed to parse nginx configuration: {message}")
