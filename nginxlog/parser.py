"""
Compiled log formats and line matching.
"""

from abc import ABC, abstractmethod
from typing import List, Pattern

from .errors import LineFormatMismatch
from .models import Record
from .templating import FormatCompiler


class StringParser(ABC):
    """Anything that turns one log line into a Record."""

    @abstractmethod
    def parse_string(self, line: str) -> Record:
        """Parse a log line into a record."""
        pass


class Parser(StringParser):
    """
    A compiled log format.

    Built once from a format string like `$remote_addr [$time_local] "$request"`
    and reused for every line. The compiled state is never mutated after
    construction, so one instance can be shared between threads.
    """

    def __init__(self, format: str, compiler: FormatCompiler = None):
        """
        Compile a format string.

        Args:
            format: Log format using `$field_name` tokens
            compiler: Compiler to use (default: FormatCompiler())

        Raises:
            InvalidFormat: if the format cannot be turned into a usable regex.
        """
        self._format = format
        self._regex, self._field_names = (compiler or FormatCompiler()).compile(format)

    @property
    def format(self) -> str:
        """The original format string."""
        return self._format

    @property
    def regex(self) -> Pattern:
        """The compiled regular expression."""
        return self._regex

    @property
    def field_names(self) -> List[str]:
        """Field names bound to the capture groups, in group order."""
        return list(self._field_names)

    def parse_string(self, line: str) -> Record:
        """
        Match a whole line and extract its fields.

        Duplicate field names keep the value of the last occurrence.

        Raises:
            LineFormatMismatch: if the line does not match the format.
        """
        match = self._regex.fullmatch(line)
        if match is None:
            raise LineFormatMismatch(line, self._format)

        fields = {}
        for name, value in zip(self._field_names, match.groups()):
            fields[name] = value if value is not None else ""
        return Record(fields)

    match = parse_string

    def __repr__(self) -> str:
        return f"Parser(format={self._format!r})"


def compile_format(format: str) -> Parser:
    """Compile a format string into a reusable parser."""
    return Parser(format)


def match_line(parser: StringParser, line: str) -> Record:
    """Apply a compiled format to one line."""
    return parser.parse_string(line)
