#!/usr/bin/env python3
"""
CLI tool for pulling log_format definitions out of nginx configuration.

Usage:
    python extract_format.py --config /etc/nginx/nginx.conf --name main
    python extract_format.py --config /etc/nginx/nginx.conf --list
"""

import click
import os
import sys

# Add the package to Python path
sys.path.insert(0, os.path.dirname(__file__))

from nginxlog import NginxLogError, Parser, tokenize_format
from nginxlog.nginx_config import list_log_formats, load_log_format


@click.command()
@click.option('--config', '-c', 'config_file',
              required=True,
              type=click.Path(exists=True, dir_okay=False),
              help='nginx configuration file')
@click.option('--name', '-n',
              default='main',
              help='Name of the log_format directive (default: main)')
@click.option('--list', 'list_only',
              is_flag=True,
              help='List the names of all log_format directives and exit')
@click.option('--show-pattern', '-p',
              is_flag=True,
              help='Also print the compiled regular expression and field names')
def extract_format(config_file: str, name: str, list_only: bool, show_pattern: bool):
    """
    Print a log format from nginx configuration as a single line.

    Multi-line directives are joined, quotes and the trailing semicolon are
    removed, so the output can be passed straight to parse_logs.py --log-format.

    Examples:

    \b
    # Show the "main" format
    python extract_format.py -c /etc/nginx/nginx.conf

    \b
    # Inspect the regex generated for a custom format
    python extract_format.py -c nginx.conf -n upstream_timing --show-pattern
    """

    try:
        if list_only:
            with open(config_file, 'r', encoding='utf-8') as f:
                names = list_log_formats(f)
            if not names:
                click.echo("No log_format directives found.")
                return
            for format_name in names:
                click.echo(format_name)
            return

        log_format = load_log_format(config_file, name)
        click.echo(log_format)

        if show_pattern:
            parser = Parser(log_format)
            fields = [str(segment) for segment in tokenize_format(log_format) if segment.is_field]
            click.echo(f"Pattern: {parser.regex.pattern}")
            click.echo(f"Fields ({len(fields)}): {', '.join(fields)}")

    except (NginxLogError, OSError) as e:
        click.echo(f"❌ Error extracting log format: {e}")
        sys.exit(1)


if __name__ == '__main__':
    extract_format()
