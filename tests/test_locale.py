"""Tests for the Babel based formatting helpers."""
import datetime

from Passbook.settings import lib
from Passbook.settings import locale
from tests.base import BaseTestCase


class CurrencyTests(BaseTestCase):

    def test_format_currency_value(self):
        self.assertEqual(locale.format_currency_value(1234.5, 'USD', 'en_US'), '$1,234.50')
        self.assertEqual(locale.format_currency_value(-3, 'USD', 'en_US'), '-$3.00')

    def test_none_is_zero(self):
        self.assertEqual(locale.format_currency_value(None, 'USD', 'en_US'), '$0.00')

    def test_uses_configured_currency(self):
        lib.settings['currency'] = 'GBP'
        lib.settings['locale'] = 'en_GB'
        self.assertEqual(locale.format_currency_value(5), '£5.00')

    def test_invalid_locale_falls_back(self):
        self.assertEqual(locale.format_currency_value(5, 'USD', 'zz_ZZ'), '5.00')

    def test_format_float(self):
        self.assertEqual(locale.format_float(1234.5, 'en_US'), '1,234.5')


class DateTests(BaseTestCase):

    def test_format_month_name(self):
        self.assertEqual(locale.format_month_name('2025-03', 'en_US'), 'March 2025')

    def test_format_month_name_invalid(self):
        for value in ('2025', '2025-13', 'abc-de'):
            with self.subTest(value=value), self.assertRaises(ValueError):
                locale.format_month_name(value, 'en_US')

    def test_get_current_month_key(self):
        self.assertEqual(locale.get_current_month_key(datetime.date(2024, 1, 9)), '2024-01')
        self.assertRegex(locale.get_current_month_key(), r'^\d{4}-\d{2}$')

    def test_parse_timestamp(self):
        self.assertEqual(
            locale.parse_timestamp('2024-05-01T10:30:00'),
            datetime.datetime(2024, 5, 1, 10, 30)
        )
        utc = locale.parse_timestamp('2024-05-01T10:30:00Z')
        self.assertIsNone(utc.tzinfo)
        self.assertEqual(
            utc,
            datetime.datetime(2024, 5, 1, 10, 30, tzinfo=datetime.timezone.utc).astimezone().replace(tzinfo=None)
        )

    def test_parse_unix_timestamp(self):
        value = datetime.datetime(2024, 5, 1, 10, 30).timestamp()
        self.assertEqual(locale.parse_timestamp(value), datetime.datetime(2024, 5, 1, 10, 30))

    def test_parse_invalid_timestamp(self):
        with self.assertRaises(ValueError):
            locale.parse_timestamp('yesterday')
        with self.assertRaises(ValueError):
            locale.parse_timestamp(None)

    def test_format_timestamp(self):
        self.assertEqual(
            locale.format_timestamp(datetime.datetime(2025, 3, 5, 14, 7), 'en_US'),
            'Mar 5, 2:07 PM'
        )

    def test_format_timestamp_invalid(self):
        self.assertEqual(locale.format_timestamp('garbage', 'en_US'), 'garbage')

    def test_format_day(self):
        self.assertEqual(locale.format_day('2024-05-01T10:30:00', 'en_US'), '5/1/24')

    def test_format_lock_time(self):
        value = datetime.datetime(2030, 1, 1, 14, 45, 10).timestamp()
        text = locale.format_lock_time(value, 'en_US')
        self.assertIn('2:45:10', text)
        self.assertIn('PM', text)
