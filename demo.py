#!/usr/bin/env python3
"""
Demo script for the nginx access log parser.
"""

import tempfile
from pathlib import Path

from nginxlog import (
    FieldParseError, LineFormatMismatch, LogReader, NginxReader, Parser
)
from nginxlog.io_utils import JSONLReader, JSONLWriter


def create_sample_config():
    """Create a sample nginx configuration."""
    return '''
http {
    # default combined-style format, split over several lines
    log_format main '$remote_addr - $remote_user [$time_local] "$request" '
                    '$status $body_bytes_sent "$http_referer" '
                    '"$http_user_agent" "$http_x_forwarded_for"';

    log_format vhost '$host$request_uri $request_method $status $request_time';

    server {
        listen 80;
        access_log /var/log/nginx/access.log main;
    }
}
'''


def create_sample_logs():
    """Create sample access log lines in the "main" format."""
    return [
        '127.0.0.1 - - [08/Nov/2013:13:39:18 +0000] "GET /api/users/123 HTTP/1.1" 200 612 "-" "curl/7.64.1" "-"',
        '192.168.1.1 - john [08/Nov/2013:13:40:02 +0000] "POST /api/login HTTP/1.1" 201 45 "https://example.com/login" "Mozilla/5.0" "-"',
        '',
        '10.0.0.1 - - [08/Nov/2013:13:41:55 +0000] "GET /admin HTTP/1.1" 403 0 "-" "Mozilla/5.0" "192.168.1.100"',
        'this line was written by something else entirely',
        '172.16.0.1 - - [08/Nov/2013:13:42:10 +0000] "DELETE /api/users/789 HTTP/1.1" 404 0 "-" "curl/7.64.1" "-"',
    ]


def main():
    """Run the demo."""
    print("🚀 Nginx Access Log Parser Demo")
    print("=" * 50)

    temp_dir = tempfile.mkdtemp()
    print(f"📁 Working in temporary directory: {temp_dir}")

    try:
        # Step 1: Compile a format by hand
        print("\n🔧 Compiling a format string...")
        parser = Parser('$remote_addr [$time_local] "$request" $status $body_bytes_sent')
        print(f"   Format:  {parser.format}")
        print(f"   Pattern: {parser.regex.pattern}")

        record = parser.parse_string('127.0.0.1 [08/Nov/2013:13:39:18 +0000] "GET /api/foo HTTP/1.1" 200 612')
        print(f"   Fields:  {dict(record.items())}")
        print(f"   Status as int: {record.get_int('status')}")

        # Step 2: Take the format from nginx.conf
        config_file = Path(temp_dir) / "nginx.conf"
        log_file = Path(temp_dir) / "access.log"
        config_file.write_text(create_sample_config(), encoding='utf-8')
        log_file.write_text("\n".join(create_sample_logs()) + "\n", encoding='utf-8')

        print("\n📝 Reading access.log with log_format 'main' from nginx.conf...")
        with open(config_file, encoding='utf-8') as config, open(log_file, encoding='utf-8') as logs:
            reader = NginxReader(logs, config, "main")
            print(f"   Format: {reader.parser.format}")

            records = []
            for result in reader.iter_results():
                if result.ok:
                    records.append(result.record)
                    print(f"   ✅ line {result.line_number}: {result.record.get('remote_addr'):12} "
                          f"{result.record.get('request')} -> {result.record.get('status')}")
                else:
                    print(f"   ❌ line {result.line_number}: {result.error}")

        # Step 3: Group and project
        print("\n📊 Requests per status:")
        counts = {}
        for record in records:
            key = record.fields_hash(["status"])
            counts[key] = counts.get(key, 0) + 1
        for key, count in sorted(counts.items()):
            print(f"   {key}: {count}")

        summary = records[0].project(["remote_addr", "status", "upstream_addr"])
        print(f"\n🎯 Projection with a missing field: {dict(summary.items())}")

        # Step 4: Adjacent fields
        print("\n🔗 Adjacent fields ($host$request_uri):")
        vhost = LogReader("example.com/api/users?id=123 GET 200 0.004",
                          '$host$request_uri $request_method $status $request_time')
        entry = vhost.read()
        print(f"   host={entry.get('host')} request_uri={entry.get('request_uri')}")
        entry.set_float("request_ms", entry.get_float("request_time") * 1000)
        print(f"   request_ms={entry.get('request_ms')}")

        # Step 5: Errors are values the caller decides about
        print("\n⚠️  Error handling:")
        try:
            parser.parse_string("not an access log line")
        except LineFormatMismatch as e:
            print(f"   {e}")
        try:
            record.set("status", "not_a_number")
            record.get_int("status")
        except FieldParseError as e:
            print(f"   {e}")

        # Step 6: Save records
        records_file = Path(temp_dir) / "records.jsonl"
        with JSONLWriter(records_file) as writer:
            writer.write_records(records)
        print(f"\n💾 Saved {len(JSONLReader(records_file).read_records())} records to: {records_file.name}")

        print(f"\n🎉 Demo completed successfully!")

    except Exception as e:
        print(f"\n❌ Demo failed with error: {e}")
        import traceback
        traceback.print_exc()

    finally:
        # Cleanup
        import shutil
        shutil.rmtree(temp_dir, ignore_errors=True)
        print(f"\n🧹 Cleaned up temporary directory")


if __name__ == '__main__':
    main()
