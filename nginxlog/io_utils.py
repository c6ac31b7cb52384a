"""
Line readers and JSONL helpers for parsed records.
"""

import io
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Union

from .errors import NginxLogError
from .models import Record
from .nginx_config import ConfigSource, extract_log_format
from .parser import Parser, StringParser

LogSource = Union[str, Iterable[str]]


@dataclass
class ParseResult:
    """Outcome of parsing one non-blank input line."""
    line_number: int  # 1-based physical line number
    line: str
    record: Optional[Record] = None
    error: Optional[NginxLogError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LogReader:
    """
    Reads log lines from a source and parses them one at a time.

    The source may be an open text file, any iterable of lines, or a
    string holding the log data itself. Blank lines are skipped.

    Iterating yields records. A line that fails to parse raises from
    `__next__`, but the reader has already moved past it, so iterating
    again continues with the following line.
    """

    def __init__(self, source: LogSource, format: str = None, parser: StringParser = None):
        """
        Args:
            source: Log lines to read
            format: Format string to compile (ignored if parser is given)
            parser: Pre-built parser, shared between readers if desired

        Raises:
            InvalidFormat: if `format` does not compile.
            ValueError: if neither format nor parser is given.
        """
        if parser is None:
            if format is None:
                raise ValueError("LogReader needs a format string or a parser")
            parser = Parser(format)

        if isinstance(source, str):
            source = io.StringIO(source)

        self.parser = parser
        self.line_number = 0
        self._source = source
        self._lines = iter(source)
        self._exhausted = False
        self._owns_source = False

    @classmethod
    def with_parser(cls, source: LogSource, parser: StringParser) -> 'LogReader':
        return cls(source, parser=parser)

    @classmethod
    def from_path(cls, path: Union[str, Path], format: str = None,
                  parser: StringParser = None) -> 'LogReader':
        """Open a log file for reading; close it with `close()` or a with-block."""
        if parser is None:
            if format is None:
                raise ValueError("LogReader needs a format string or a parser")
            parser = Parser(format)
        file_handle = open(path, 'r', encoding='utf-8')
        reader = cls(file_handle, parser=parser)
        reader._owns_source = True
        return reader

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Close the underlying file if this reader opened it."""
        if self._owns_source:
            self._source.close()
            self._owns_source = False

    def _next_line(self) -> Optional[str]:
        if self._exhausted:
            return None

        for raw in self._lines:
            self.line_number += 1

            line = raw
            if line.endswith('\n'):
                line = line[:-1]
                if line.endswith('\r'):
                    line = line[:-1]

            if not line.strip():
                continue
            return line

        self._exhausted = True
        return None

    def read(self) -> Optional[Record]:
        """
        Read and parse the next non-blank line.

        Returns:
            The parsed record, or None at end of input.

        Raises:
            LineFormatMismatch: if the line does not match the format.
            OSError: if the underlying source fails.
        """
        line = self._next_line()
        if line is None:
            return None
        return self.parser.parse_string(line)

    def __iter__(self) -> Iterator[Record]:
        return self

    def __next__(self) -> Record:
        record = self.read()
        if record is None:
            raise StopIteration
        return record

    def iter_results(self) -> Iterator[ParseResult]:
        """Yield one ParseResult per non-blank line; parse failures never raise."""
        while True:
            line = self._next_line()
            if line is None:
                return

            try:
                record = self.parser.parse_string(line)
            except NginxLogError as e:
                result = ParseResult(self.line_number, line, error=e)
            else:
                result = ParseResult(self.line_number, line, record=record)
            yield result

    def collect_all(self) -> List[Record]:
        """Parse every remaining line, raising the first error encountered."""
        return list(self)

    def process_entries(self, callback: Callable[[Record], None]) -> None:
        """Call `callback` for each record, stopping at the first error."""
        for record in self:
            callback(record)


class NginxReader(LogReader):
    """
    A LogReader whose format comes from a log_format directive in nginx configuration.
    """

    def __init__(self, log_source: LogSource, nginx_config: ConfigSource, format_name: str):
        """
        Args:
            log_source: Log lines to read
            nginx_config: Configuration text or an iterable of its lines
            format_name: Name of the log_format directive (e.g. "main")

        Raises:
            TemplateNotFound: if the configuration has no such directive.
        """
        self.format_name = format_name
        super().__init__(log_source, format=extract_log_format(nginx_config, format_name))


class JSONLWriter:
    """
    Writer for JSONL (JSON Lines) files of records.
    """

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)
        self.file_handle = None

    def __enter__(self):
        self.file_handle = open(self.file_path, 'w', encoding='utf-8')
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.file_handle:
            self.file_handle.close()

    def write_record(self, record: Record) -> None:
        """Write a single record to the JSONL file."""
        if not self.file_handle:
            raise ValueError("JSONLWriter not opened")

        json.dump(record.to_dict(), self.file_handle, ensure_ascii=False)
        self.file_handle.write('\n')

    def write_records(self, records: Iterable[Record]) -> None:
        for record in records:
            self.write_record(record)


class JSONLReader:
    """
    Reader for JSONL (JSON Lines) files of records.
    """

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)

    def read_records(self) -> List[Record]:
        """Read all records from the JSONL file."""
        return list(self)

    def __iter__(self) -> Iterator[Record]:
        """
        Iterate over records in the file.

        Raises:
            ValueError: on a line that is not a valid record.
        """
        with open(self.file_path, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    record = Record.from_dict(json.loads(line))
                except (json.JSONDecodeError, KeyError, TypeError) as e:
                    raise ValueError(f"invalid record at line {line_num} of {self.file_path}: {e}") from e
                yield record


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists and return Path object."""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path
