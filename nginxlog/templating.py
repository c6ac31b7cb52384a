"""
Format string compilation into anchored regular expressions.

A format such as `$remote_addr [$time_local] "$request"` is split into
literal and field segments. Each field becomes one capture group whose
pattern is chosen by the first matching capture rule, and every literal
is escaped so it matches verbatim.
"""

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Pattern, Tuple

from .errors import InvalidFormat
from .models import Segment, SegmentKind

FIELD_TOKEN = re.compile(r'\$(\w+)')


def tokenize_format(format: str) -> List[Segment]:
    """
    Split a format string into literal and field segments.

    Offsets are kept so callers can point back into the original format.
    A field directly followed by another field is flagged as adjacent.
    """
    segments: List[Segment] = []
    last_end = 0

    for match in FIELD_TOKEN.finditer(format):
        if match.start() > last_end:
            segments.append(Segment(SegmentKind.LITERAL, format[last_end:match.start()],
                                    last_end, match.start()))
        elif segments and segments[-1].is_field:
            segments[-1].adjacent = True

        segments.append(Segment(SegmentKind.FIELD, match.group(1), match.start(), match.end()))
        last_end = match.end()

    if last_end < len(format):
        segments.append(Segment(SegmentKind.LITERAL, format[last_end:], last_end, len(format)))

    return segments


def find_delimiter(segments: List[Segment], index: int) -> Optional[str]:
    """
    Return the first literal character after the field at `index`.

    Fields chained directly after it are skipped. None means no literal
    text follows before the end of the format.
    """
    position = index + 1
    while position < len(segments) and segments[position].is_field:
        position += 1

    if position < len(segments):
        return segments[position].text[0]
    return None


class CaptureRule(ABC):
    """Base class for capture group pattern rules."""

    @abstractmethod
    def can_handle(self, segment: Segment, delimiter: Optional[str]) -> bool:
        """Check if this rule decides the pattern for the given field."""
        pass

    @abstractmethod
    def pattern(self, segment: Segment, delimiter: Optional[str]) -> str:
        """Return the body of the capture group (without parentheses)."""
        pass


class HostCaptureRule(CaptureRule):
    """
    A `$host` glued to the next field, as in `$host$request_uri`.

    Host names never contain `/`, `?` or `:`, so the capture stops at the
    first character outside host name syntax.
    """

    def can_handle(self, segment: Segment, delimiter: Optional[str]) -> bool:
        return segment.adjacent and segment.text == "host"

    def pattern(self, segment: Segment, delimiter: Optional[str]) -> str:
        return r'[a-zA-Z0-9.-]+'


class ToEndCaptureRule(CaptureRule):
    """Fields with no literal text after them take the rest of the line."""

    def can_handle(self, segment: Segment, delimiter: Optional[str]) -> bool:
        return delimiter is None

    def pattern(self, segment: Segment, delimiter: Optional[str]) -> str:
        return r'.*'


class AdjacentCaptureRule(CaptureRule):
    """First field of an adjacent pair: shortest span up to the next real delimiter."""

    def can_handle(self, segment: Segment, delimiter: Optional[str]) -> bool:
        return segment.adjacent

    def pattern(self, segment: Segment, delimiter: Optional[str]) -> str:
        return f'[^{re.escape(delimiter)}]*?'


class DelimitedCaptureRule(CaptureRule):
    """Default: everything up to the delimiter character."""

    def can_handle(self, segment: Segment, delimiter: Optional[str]) -> bool:
        return delimiter is not None

    def pattern(self, segment: Segment, delimiter: Optional[str]) -> str:
        return f'[^{re.escape(delimiter)}]*'


class FormatCompiler:
    """
    Turns format strings into anchored regular expressions.

    Rules are consulted in order and the first one that can handle a
    field decides its capture pattern.
    """

    def __init__(self):
        self.rules = [
            HostCaptureRule(),
            ToEndCaptureRule(),
            AdjacentCaptureRule(),
            DelimitedCaptureRule(),
        ]

    def capture_pattern(self, segment: Segment, delimiter: Optional[str]) -> str:
        for rule in self.rules:
            if rule.can_handle(segment, delimiter):
                return rule.pattern(segment, delimiter)
        # unreachable with the default rule set
        raise ValueError(f"no capture rule for field '{segment.text}'")

    def build_pattern(self, format: str) -> Tuple[str, List[str]]:
        """
        Build the regex source for a format string.

        Returns:
            The anchored pattern and the field names, one per capture
            group, in group order.
        """
        segments = tokenize_format(format)
        parts = []
        field_names = []

        for index, segment in enumerate(segments):
            if segment.is_field:
                delimiter = find_delimiter(segments, index)
                parts.append(f"({self.capture_pattern(segment, delimiter)})")
                field_names.append(segment.text)
            else:
                parts.append(re.escape(segment.text))

        return f"^{''.join(parts)}$", field_names

    def compile(self, format: str) -> Tuple[Pattern, List[str]]:
        """
        Compile a format string.

        Raises:
            InvalidFormat: if the synthesized pattern is rejected by `re`.
        """
        pattern, field_names = self.build_pattern(format)
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise InvalidFormat(format, e) from e
        return regex, field_names


def format_to_regex(format: str) -> str:
    """Return the regex source a format string compiles to."""
    pattern, _ = FormatCompiler().build_pattern(format)
    return pattern
