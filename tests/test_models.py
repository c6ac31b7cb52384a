"""
Tests for the Record container and template segments.
"""

import math
import unittest

from nginxlog.errors import FieldNotFound, FieldParseError
from nginxlog.models import Record, Segment, SegmentKind


class TestRecordAccess(unittest.TestCase):
    """Test string and typed accessors."""

    def setUp(self):
        self.record = Record.from_fields({
            'remote_addr': '127.0.0.1',
            'status': '200',
            'request_time': '0.153',
            'empty': '',
            'bad': 'not_a_number',
        })

    def test_get(self):
        self.assertEqual(self.record.get('remote_addr'), '127.0.0.1')
        self.assertEqual(self.record.get('empty'), '')

    def test_missing_field(self):
        with self.assertRaises(FieldNotFound) as ctx:
            self.record.get('nonexistent')

        self.assertEqual(ctx.exception.field, 'nonexistent')
        self.assertEqual(str(ctx.exception), "field 'nonexistent' not found")
        self.assertIsInstance(ctx.exception, KeyError)

    def test_get_int(self):
        self.assertEqual(self.record.get_int('status'), 200)

    def test_get_int_parse_error(self):
        with self.assertRaises(FieldParseError) as ctx:
            self.record.get_int('bad')

        self.assertEqual(ctx.exception.field, 'bad')
        self.assertEqual(ctx.exception.value, 'not_a_number')
        self.assertEqual(ctx.exception.target_type, 'int')
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_get_int_rejects_loose_literals(self):
        """Only plain ASCII digits with an optional sign convert."""
        for value in (' 200 ', '200\n', '1_000', '١٢', '', '+', '0x1f', '1e3'):
            with self.subTest(value=value):
                with self.assertRaises(FieldParseError):
                    Record({'a': value}).get_int('a')

    def test_get_int_signed(self):
        self.assertEqual(Record({'a': '+5'}).get_int('a'), 5)
        self.assertEqual(Record({'a': '-42'}).get_int('a'), -42)
        self.assertEqual(Record({'a': '007'}).get_int('a'), 7)

    def test_get_int_on_missing_field(self):
        with self.assertRaises(FieldNotFound):
            self.record.get_int('nonexistent')

    def test_get_int_rejects_decimal(self):
        with self.assertRaises(FieldParseError):
            self.record.get_int('request_time')

    def test_get_float(self):
        self.assertAlmostEqual(self.record.get_float('request_time'), 0.153)
        self.assertEqual(self.record.get_float('status'), 200.0)

    def test_get_float_parse_error(self):
        with self.assertRaises(FieldParseError) as ctx:
            self.record.get_float('empty')

        self.assertEqual(ctx.exception.target_type, 'float')

    def test_get_float_rejects_loose_literals(self):
        for value in ('1_0.5', ' 0.153', '0.153 ', '١.٥', '.', 'e5', '1.2.3'):
            with self.subTest(value=value):
                with self.assertRaises(FieldParseError):
                    Record({'a': value}).get_float('a')

    def test_get_float_accepted_forms(self):
        cases = [('+1.5', 1.5), ('-.5', -0.5), ('5.', 5.0), ('1e3', 1000.0), ('2.5E-1', 0.25)]

        for value, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(Record({'a': value}).get_float('a'), expected)
        self.assertTrue(math.isinf(Record({'a': 'inf'}).get_float('a')))
        self.assertTrue(math.isnan(Record({'a': 'NaN'}).get_float('a')))

    def test_values_are_not_cached(self):
        self.assertEqual(self.record.get_int('status'), 200)
        self.record.set('status', '404')
        self.assertEqual(self.record.get_int('status'), 404)


class TestRecordMutation(unittest.TestCase):
    """Test setters, merge, grouping keys and projection."""

    def test_set(self):
        record = Record()
        record.set('new_field', 'test_value')

        self.assertEqual(record.get('new_field'), 'test_value')

    def test_set_float_two_decimals(self):
        record = Record()
        record.set_float('pi', math.pi)
        record.set_float('whole', 2)

        self.assertEqual(record.get('pi'), '3.14')
        self.assertEqual(record.get('whole'), '2.00')
        self.assertLess(abs(record.get_float('pi') - math.pi), 0.01)

    def test_set_uint(self):
        record = Record()
        record.set_uint('count', 42)

        self.assertEqual(record.get('count'), '42')
        self.assertEqual(record.get_int('count'), 42)

    def test_set_uint_negative(self):
        with self.assertRaises(ValueError):
            Record().set_uint('count', -1)

    def test_merge_overwrites(self):
        record = Record.from_fields({'a': '1', 'b': '2'})
        record.merge(Record.from_fields({'b': '20', 'c': '30'}))

        self.assertEqual(record.fields, {'a': '1', 'b': '20', 'c': '30'})

    def test_fields_hash(self):
        record = Record.from_fields({'remote_addr': '127.0.0.1', 'status': '200'})

        self.assertEqual(record.fields_hash(['status', 'remote_addr', 'missing']),
                         "'status'=200;'remote_addr'=127.0.0.1;'missing'=NULL")
        self.assertEqual(record.fields_hash(['remote_addr', 'status']),
                         "'remote_addr'=127.0.0.1;'status'=200")
        self.assertEqual(record.fields_hash([]), '')

    def test_project(self):
        record = Record.from_fields({'a': '1', 'b': '2'})

        projected = record.project(['a', 'missing'])

        self.assertEqual(projected.fields, {'a': '1', 'missing': ''})
        self.assertEqual(projected.get('missing'), '')
        self.assertIsNot(projected, record)
        self.assertEqual(record.fields, {'a': '1', 'b': '2'})

    def test_from_fields_copies(self):
        source = {'a': '1'}
        record = Record.from_fields(source)
        record.set('a', '2')

        self.assertEqual(source, {'a': '1'})


class TestRecordContainer(unittest.TestCase):
    """Test container helpers and serialisation."""

    def test_container_protocol(self):
        record = Record.from_fields({'a': '1', 'b': '2'})

        self.assertEqual(len(record), 2)
        self.assertIn('a', record)
        self.assertNotIn('z', record)
        self.assertEqual(sorted(record.names()), ['a', 'b'])
        self.assertEqual(dict(record.items()), {'a': '1', 'b': '2'})
        self.assertFalse(record.is_empty())
        self.assertTrue(Record().is_empty())

    def test_equality(self):
        self.assertEqual(Record.from_fields({'a': '1'}), Record.from_fields({'a': '1'}))
        self.assertNotEqual(Record.from_fields({'a': '1'}), Record.from_fields({'a': '2'}))

    def test_serialisation(self):
        record = Record.from_fields({'status': '200', 'request': 'GET / HTTP/1.1'})

        self.assertEqual(record.to_dict(), {'fields': {'status': '200', 'request': 'GET / HTTP/1.1'}})
        self.assertEqual(Record.from_dict(record.to_dict()), record)
        self.assertEqual(Record.from_json(record.to_json()), record)


class TestSegment(unittest.TestCase):

    def test_str(self):
        self.assertEqual(str(Segment(SegmentKind.FIELD, 'status', 0, 7)), '$status')
        self.assertEqual(str(Segment(SegmentKind.LITERAL, ' [', 7, 9)), ' [')
        self.assertEqual(str(SegmentKind.FIELD), 'field')


if __name__ == '__main__':
    unittest.main()
