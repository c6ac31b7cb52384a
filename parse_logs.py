#!/usr/bin/env python3
"""
CLI tool for parsing access logs into structured records.

Usage:
    python parse_logs.py --log-format '$remote_addr [$time_local] "$request" $status' --in access.log --out records.csv
    python parse_logs.py --nginx-config nginx.conf --format-name main --in access.log --out records.jsonl --format jsonl
"""

import click
import csv
import json
import sys
import os
from collections import defaultdict
from itertools import islice
from pathlib import Path
from typing import Dict, Iterator, List, Optional
from tqdm import tqdm

# Add the package to Python path
sys.path.insert(0, os.path.dirname(__file__))

from nginxlog import LogReader, NginxLogError, Parser, ParseResult
from nginxlog.io_utils import ensure_directory
from nginxlog.nginx_config import load_log_format

# inserted by the decoder for bytes that are not valid UTF-8
REPLACEMENT_CHAR = '\ufffd'


class ParseReport:
    """
    Collects statistics while log lines are parsed.
    """

    def __init__(self, group_by: Optional[List[str]] = None):
        self.group_by = group_by or []
        self.total_lines = 0
        self.parsed_lines = 0
        self.group_counts = defaultdict(int)
        self.failed_samples = []
        self.max_failed_samples = 100
        self.replaced_lines = 0

    def add_result(self, result: ParseResult) -> None:
        self.total_lines += 1
        if REPLACEMENT_CHAR in result.line:
            self.replaced_lines += 1

        if result.ok:
            self.parsed_lines += 1
            if self.group_by:
                self.group_counts[result.record.fields_hash(self.group_by)] += 1
        elif len(self.failed_samples) < self.max_failed_samples:
            self.failed_samples.append((result.line_number, result.line[:200]))

    def get_summary(self) -> Dict:
        """Get summary statistics."""
        parse_rate = (self.parsed_lines / self.total_lines * 100) if self.total_lines > 0 else 0

        return {
            'total_lines': self.total_lines,
            'parsed_lines': self.parsed_lines,
            'failed_lines': self.total_lines - self.parsed_lines,
            'replaced_lines': self.replaced_lines,
            'parse_rate': parse_rate,
            'unique_groups': len(self.group_counts),
            'top_groups': sorted(self.group_counts.items(), key=lambda x: x[1], reverse=True)[:10],
            'failed_samples': self.failed_samples[:20]
        }


def _split_names(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [name.strip() for name in value.split(',') if name.strip()]


def _output_fields(parser: Parser, fields: List[str]) -> List[str]:
    """Columns to write: the requested fields, or every field of the format once."""
    if fields:
        return fields
    return list(dict.fromkeys(parser.field_names))


def _iter_results(input_file: str, parser: Parser, skip_errors: bool,
                  verbose: bool, sample_lines: Optional[int]) -> Iterator[ParseResult]:
    """Parse the input file, stopping at the first bad line unless skip_errors is set."""
    with open(input_file, 'r', encoding='utf-8', errors='replace') as infile:
        lines = islice(infile, sample_lines) if sample_lines else infile
        progress = tqdm(lines, unit=' lines', disable=not verbose)
        reader = LogReader.with_parser(progress, parser)

        for result in reader.iter_results():
            if not result.ok and not skip_errors:
                raise result.error
            yield result


@click.command()
@click.option('--log-format', '-f',
              help='Log format string using $field tokens')
@click.option('--nginx-config', '-c',
              type=click.Path(exists=True, dir_okay=False),
              help='nginx configuration file to take the log_format from')
@click.option('--format-name', '-n',
              default='main',
              help='Name of the log_format directive (default: main)')
@click.option('--input', '--in', 'input_file',
              required=True,
              type=click.Path(exists=True, dir_okay=False),
              help='Input log file to parse')
@click.option('--output', '--out', 'output_file',
              required=True,
              type=click.Path(),
              help='Output file for parsed records')
@click.option('--format', 'output_format',
              type=click.Choice(['csv', 'jsonl', 'summary']),
              default='csv',
              help='Output format (default: csv)')
@click.option('--fields',
              help='Comma-separated fields to keep (default: all fields of the format)')
@click.option('--group-by',
              help='Comma-separated fields to count records by in the summary')
@click.option('--skip-errors',
              is_flag=True,
              help='Report lines that do not match the format instead of stopping')
@click.option('--verbose', '-v',
              is_flag=True,
              help='Enable verbose output')
@click.option('--sample-lines',
              type=int,
              help='Process only first N lines (for testing)')
def parse_logs(log_format: str,
               nginx_config: str,
               format_name: str,
               input_file: str,
               output_file: str,
               output_format: str,
               fields: str,
               group_by: str,
               skip_errors: bool,
               verbose: bool,
               sample_lines: int):
    """
    Parse access log lines into structured records.

    The line format is given either directly with --log-format or by naming
    a log_format directive in an nginx configuration file.

    Examples:

    \b
    # CSV output with an explicit format
    python parse_logs.py -f '$remote_addr [$time_local] "$request" $status' \\
        --in access.log --out records.csv

    \b
    # Format from nginx.conf, keep going past malformed lines
    python parse_logs.py -c /etc/nginx/nginx.conf -n main --in access.log \\
        --out records.jsonl --format jsonl --skip-errors

    \b
    # Count requests per status code
    python parse_logs.py -c nginx.conf --in access.log --out summary.txt \\
        --format summary --group-by status
    """

    if bool(log_format) == bool(nginx_config):
        click.echo("Error: Give exactly one of --log-format or --nginx-config")
        sys.exit(1)

    if sample_lines is not None and sample_lines <= 0:
        click.echo("Error: --sample-lines must be positive")
        sys.exit(1)

    partial_output = None

    try:
        if nginx_config:
            if verbose:
                click.echo(f"Loading log_format '{format_name}' from: {nginx_config}")
            log_format = load_log_format(nginx_config, format_name)

        parser = Parser(log_format)

        if verbose:
            click.echo(f"Format: {parser.format}")
            click.echo(f"Pattern: {parser.regex.pattern}")

        columns = _output_fields(parser, _split_names(fields))
        report = ParseReport(_split_names(group_by))

        output_path = Path(output_file)
        ensure_directory(output_path.parent)

        results = _iter_results(input_file, parser, skip_errors, verbose, sample_lines)

        if output_format in ('csv', 'jsonl'):
            partial_output = output_path

        if output_format == 'csv':
            _process_logs_csv(results, report, output_path, columns, skip_errors)
        elif output_format == 'jsonl':
            _process_logs_jsonl(results, report, output_path, columns)
        elif output_format == 'summary':
            _process_logs_summary(results, report, output_path, input_file, parser)
        partial_output = None

        # Print summary
        summary = report.get_summary()
        click.echo(f"\n✅ Parsing completed!")
        click.echo(f"📊 Results:")
        click.echo(f"   • Total lines processed: {summary['total_lines']}")
        click.echo(f"   • Parsed lines: {summary['parsed_lines']}")
        click.echo(f"   • Parse rate: {summary['parse_rate']:.1f}%")
        if report.group_by:
            click.echo(f"   • Distinct groups: {summary['unique_groups']}")
        click.echo(f"   • Output file: {output_path.absolute()}")
        if summary['replaced_lines']:
            click.echo(f"   ⚠️  Lines with invalid UTF-8 (bytes replaced by U+FFFD): {summary['replaced_lines']}")

        if verbose and summary['failed_lines'] > 0:
            click.echo(f"\n🔍 Sample lines that did not match:")
            for line_number, sample in summary['failed_samples'][:5]:
                click.echo(f"   {line_number}: {sample}")
            if len(summary['failed_samples']) > 5:
                click.echo(f"   ... and {len(summary['failed_samples']) - 5} more")

    except KeyboardInterrupt:
        click.echo("\n❌ Parsing cancelled by user")
        _discard_partial_output(partial_output)
        sys.exit(1)
    except (NginxLogError, OSError) as e:
        click.echo(f"\n❌ Error during parsing: {e}")
        _discard_partial_output(partial_output)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


def _discard_partial_output(output_path: Optional[Path]) -> None:
    """Remove a csv/jsonl file left incomplete by a failed run."""
    if output_path is not None and output_path.exists():
        output_path.unlink()


def _process_logs_csv(results: Iterator[ParseResult], report: ParseReport,
                      output_path: Path, columns: List[str], skip_errors: bool):
    """Write one CSV row per line."""

    with open(output_path, 'w', newline='', encoding='utf-8') as outfile:
        writer = csv.writer(outfile)

        header = ['line_number'] + columns
        if skip_errors:
            header.append('error')
        writer.writerow(header)

        for result in results:
            report.add_result(result)

            if result.ok:
                projected = result.record.project(columns)
                row = [result.line_number] + [projected.get(name) for name in columns]
                if skip_errors:
                    row.append('')
            else:
                row = [result.line_number] + [''] * len(columns) + [str(result.error)]

            writer.writerow(row)


def _process_logs_jsonl(results: Iterator[ParseResult], report: ParseReport,
                        output_path: Path, columns: List[str]):
    """Write one JSON object per line."""

    with open(output_path, 'w', encoding='utf-8') as outfile:
        for result in results:
            report.add_result(result)

            if result.ok:
                data = {
                    'line_number': result.line_number,
                    'fields': result.record.project(columns).to_dict()['fields']
                }
            else:
                data = {
                    'line_number': result.line_number,
                    'line': result.line,
                    'error': str(result.error)
                }

            json.dump(data, outfile, ensure_ascii=False)
            outfile.write('\n')


def _process_logs_summary(results: Iterator[ParseResult], report: ParseReport,
                          output_path: Path, input_file: str, parser: Parser):
    """Collect statistics and write a plain text report."""

    for result in results:
        report.add_result(result)

    summary = report.get_summary()

    with open(output_path, 'w', encoding='utf-8') as outfile:
        outfile.write("ACCESS LOG PARSING SUMMARY REPORT\n")
        outfile.write("=" * 50 + "\n\n")

        outfile.write(f"Input file: {input_file}\n")
        outfile.write(f"Log format: {parser.format}\n")
        outfile.write(f"Total lines processed: {summary['total_lines']}\n")
        outfile.write(f"Parsed lines: {summary['parsed_lines']}\n")
        outfile.write(f"Failed lines: {summary['failed_lines']}\n")
        if summary['replaced_lines']:
            outfile.write(f"Lines with invalid UTF-8: {summary['replaced_lines']}\n")
        outfile.write(f"Parse rate: {summary['parse_rate']:.1f}%\n\n")

        if summary['top_groups']:
            outfile.write(f"TOP GROUPS BY {', '.join(report.group_by).upper()}:\n")
            outfile.write("-" * 25 + "\n")
            for i, (group, count) in enumerate(summary['top_groups'], 1):
                outfile.write(f"{i:2}. [{count:6}x] {group}\n")
            outfile.write("\n")

        if summary['failed_samples']:
            outfile.write("SAMPLE LINES THAT DID NOT MATCH:\n")
            outfile.write("-" * 25 + "\n")
            for line_number, sample in summary['failed_samples']:
                outfile.write(f"{line_number:6}: {sample}\n")


if __name__ == '__main__':
    parse_logs()
