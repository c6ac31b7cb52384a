"""
Extraction of `log_format` definitions from nginx configuration.

Only as much of the configuration language is understood as is needed to
find one named directive and rebuild its format string:

    log_format main '$remote_addr - $remote_user [$time_local] "$request" '
                    '$status $body_bytes_sent "$http_referer" '
                    '"$http_user_agent" "$http_x_forwarded_for"';
"""

import io
import re
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from .errors import ConfigParseError, TemplateNotFound

ConfigSource = Union[str, Iterable[str]]

DIRECTIVE_NAME = re.compile(r'^\s*log_format\s+(\S+)')


def _config_lines(config: ConfigSource) -> Iterator[str]:
    """Yield stripped lines, skipping blanks and comments."""
    if isinstance(config, str):
        config = io.StringIO(config)

    for line in config:
        trimmed = line.strip()
        if not trimmed or trimmed.startswith('#'):
            continue
        yield trimmed


def count_braces(text: str) -> int:
    """
    Net count of `{` minus `}` outside quoted sub-strings.

    A backslash escapes the next character, so `\\'` does not open or
    close a quote.
    """
    count = 0
    quote = None
    escape_next = False

    for ch in text:
        if escape_next:
            escape_next = False
            continue

        if ch == '\\':
            escape_next = True
        elif quote is not None:
            if ch == quote:
                quote = None
        elif ch in ('"', "'"):
            quote = ch
        elif ch == '{':
            count += 1
        elif ch == '}':
            count -= 1

    return count


def remove_surrounding_quotes(text: str) -> str:
    """Strip one layer of matching single or double quotes."""
    trimmed = text.strip()
    if len(trimmed) >= 2 and trimmed[0] == trimmed[-1] and trimmed[0] in ('"', "'"):
        return trimmed[1:-1]
    return trimmed


def _collect_fragments(config: ConfigSource, name: str) -> List[str]:
    start = re.compile(rf'^\s*log_format\s+{re.escape(name)}\s+(.+)')
    fragments: List[str] = []
    brace_count = 0

    for line in _config_lines(config):
        if not fragments:
            match = start.match(line)
            if match is None:
                continue
            fragment = match.group(1)
        else:
            fragment = line

        fragments.append(fragment)
        brace_count += count_braces(fragment)

        if fragment.rstrip().endswith(';') and brace_count == 0:
            return fragments

    if fragments and brace_count != 0:
        raise ConfigParseError(
            f"unbalanced braces in log_format '{name}' (net {brace_count:+d}) at end of input")
    return fragments


def extract_log_format(config: ConfigSource, name: str) -> str:
    """
    Extract a named log format from nginx configuration.

    Args:
        config: Configuration text, or any iterable of lines such as an open file
        name: Name of the log_format directive (e.g. "main", "combined")

    Returns:
        The format string on a single line, quotes and terminator removed.

    Raises:
        TemplateNotFound: if no directive with that name exists.
        ConfigParseError: if input ends inside the directive with unbalanced braces.
    """
    fragments = _collect_fragments(config, name)
    if not fragments:
        raise TemplateNotFound(name)

    cleaned = []
    for fragment in fragments:
        fragment = fragment.strip()
        if fragment.endswith(';'):
            fragment = fragment[:-1]
        cleaned.append(remove_surrounding_quotes(fragment))

    format = " ".join(cleaned)
    if format.endswith(';'):
        format = format[:-1]
    format = remove_surrounding_quotes(format)

    return " ".join(format.split())


def load_log_format(path: Union[str, Path], name: str) -> str:
    """Read an nginx configuration file and extract a named log format."""
    with open(path, 'r', encoding='utf-8') as f:
        return extract_log_format(f, name)


def list_log_formats(config: ConfigSource) -> List[str]:
    """Names of all log_format directives, in order of appearance."""
    names = []
    for line in _config_lines(config):
        match = DIRECTIVE_NAME.match(line)
        if match and match.group(1) not in names:
            names.append(match.group(1))
    return names
