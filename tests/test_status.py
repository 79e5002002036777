"""Tests for the status codes and exceptions."""
import logging

from Passbook.status import status
from Passbook.ui.actions import signals
from tests.base import BaseTestCase


class StatusTests(BaseTestCase):

    def test_every_status_has_a_message(self):
        for s in status.Status:
            self.assertIn(s, status.STATUS_MESSAGE)

    def test_get_message(self):
        self.assertEqual(status.get_message(status.Status.SessionExpired), 'Session expired')
        self.assertEqual(status.get_message(status.Status.ServiceUnavailable), 'Failed to connect to server')

    def test_exception_without_message(self):
        ex = status.ServiceUnavailableException()
        self.assertEqual(ex.message, 'Failed to connect to server')
        self.assertEqual(str(ex), 'Failed to connect to server')

    def test_exception_with_context(self):
        ex = status.ConfigInvalidException('bad value')
        self.assertEqual(ex.message, 'bad value')
        self.assertEqual(str(ex), f'{status.get_message(status.Status.ConfigInvalid)} bad value')

    def test_request_failed(self):
        ex = status.RequestFailedException('Month not found', status_code=404)
        self.assertEqual(str(ex), 'Month not found')
        self.assertEqual(ex.status_code, 404)
        self.assertEqual(ex.status, status.Status.RequestFailed)

    def test_exception_emits_error(self):
        errors = self.record(signals.error)
        status.PaginationException()
        self.assertEqual(errors.calls, [(status.get_message(status.Status.PaginationInvalid),)])

    def test_log_levels(self):
        with self.assertLogs(level=logging.WARNING) as logs:
            status.SessionExpiredException()
            status.RequestFailedException('Boom')

        levels = [r.levelno for r in logs.records]
        self.assertEqual(levels, [logging.WARNING, logging.ERROR])
