"""
Nginx Access Log Parsing

A Python library for turning access log lines into records using
nginx-style `$field` format strings, including formats taken straight
from `log_format` directives in nginx configuration.
"""

__version__ = "1.0.0"
__author__ = "nginxlog contributors"

from .errors import (
    NginxLogError, FieldNotFound, FieldParseError, LineFormatMismatch,
    InvalidFormat, TemplateNotFound, ConfigParseError
)
from .models import Record, Segment, SegmentKind
from .templating import FormatCompiler, tokenize_format, format_to_regex
from .parser import Parser, StringParser, compile_format, match_line
from .nginx_config import extract_log_format, load_log_format, list_log_formats
from .io_utils import LogReader, NginxReader, ParseResult, JSONLWriter, JSONLReader

__all__ = [
    "NginxLogError",
    "FieldNotFound",
    "FieldParseError",
    "LineFormatMismatch",
    "InvalidFormat",
    "TemplateNotFound",
    "ConfigParseError",
    "Record",
    "Segment",
    "SegmentKind",
    "FormatCompiler",
    "tokenize_format",
    "format_to_regex",
    "Parser",
    "StringParser",
    "compile_format",
    "match_line",
    "extract_log_format",
    "load_log_format",
    "list_log_formats",
    "LogReader",
    "NginxReader",
    "ParseResult",
    "JSONLWriter",
    "JSONLReader",
]
