# tests/test_log.py
"""
Integration tests for Passbook.log
(covers TankHandler, Qt bridge, setup helpers and the log dialog data).

Run:
    python -m unittest tests.test_log
"""
import logging
from typing import List

from PySide6.QtCore import QtMsgType

from Passbook.log import log
from Passbook.log.log import (
    QUIET_LOGGERS,
    TankHandler,
    get_tank_handler,
    qt_message_handler,
    set_logging_level,
    setup_logging,
)
from Passbook.ui.actions import signals
from tests.base import BaseTestCase


class LogModuleTests(BaseTestCase):
    """
    Each test starts with a fresh root logger configured by
    setup_logging(enable_stream_handler=False).
    """

    def setUp(self) -> None:
        super().setUp()

        logging.disable(logging.NOTSET)

        setup_logging(enable_stream_handler=False,
                      enable_qt_handler=False,
                      log_level=logging.DEBUG)

        self.root_logger = logging.getLogger()
        self.tank: TankHandler = get_tank_handler()

    def test_get_tank_handler_returns_installed_handler(self):
        self.assertIsInstance(self.tank, TankHandler)
        self.assertIn(self.tank, self.root_logger.handlers)

    def test_get_tank_handler_returns_none_without_handler(self):
        self.root_logger.removeHandler(self.tank)
        try:
            self.assertIsNone(get_tank_handler())
        finally:
            self.root_logger.addHandler(self.tank)

    def test_tank_handles_very_long_message(self):
        """
        A very long error message is stored intact and still raises the showLogs signal.
        """
        long_msg = 'X' * 100_000
        triggered = self.record(signals.showLogs)

        logging.error(long_msg)

        self.assertTrue(triggered.count, 'showLogs not emitted for long ERROR message')
        stored = self.tank.get_logs(logging.ERROR)[-1]
        self.assertIn(long_msg[-50:], stored[-60:], 'Long message truncated in TankHandler')

    def test_warning_does_not_trigger_showLogs(self):
        triggered = self.record(signals.showLogs)
        logging.warning('just a warning')
        self.assertEqual(triggered.count, 0)

    def test_set_logging_level_accepts_valid_levels(self):
        set_logging_level(logging.ERROR)
        self.assertEqual(self.root_logger.level, logging.ERROR)
        for h in self.root_logger.handlers:
            self.assertEqual(h.level, logging.ERROR)

    def test_set_logging_level_rejects_non_int(self):
        with self.assertRaises(ValueError):
            set_logging_level('INFO')  # type: ignore[arg-type]

    def test_set_logging_level_rejects_unknown(self):
        with self.assertRaises(ValueError):
            set_logging_level(1234)

    def test_tank_handler_stores_and_filters(self):
        self.tank.clear_logs()
        logging.debug('dbg message')
        logging.error('err message')
        self.assertEqual(len(self.tank.tank), 2)
        errs: List[str] = self.tank.get_logs(logging.ERROR)
        self.assertEqual(len(errs), 1)
        self.assertIn('err message', errs[0])
        self.tank.clear_logs()
        self.assertEqual(len(self.tank.tank), 0)

    def test_tank_drops_oldest_records(self):
        handler = TankHandler(size=3)
        handler.setFormatter(logging.Formatter('%(message)s'))
        logger = logging.getLogger('passbook.tank')
        logger.addHandler(handler)
        self.addCleanup(logger.removeHandler, handler)

        for i in range(5):
            logger.info(f'message {i}')

        self.assertEqual(handler.get_logs(), ['message 2', 'message 3', 'message 4'])

    def test_log_format_contains_module_and_level(self):
        self.tank.clear_logs()
        logging.info('formatted')
        message = self.tank.get_logs()[-1]
        self.assertIn('<test_log>', message)
        self.assertIn('INFO:', message)

    def test_qt_message_handler_maps_to_logging(self):
        qt_message_handler(QtMsgType.QtInfoMsg, None, 'Qt info')
        qt_message_handler(QtMsgType.QtWarningMsg, None, 'Qt warn')
        msgs = self.tank.get_logs()
        self.assertTrue(any('Qt info' in m for m in msgs))
        self.assertTrue(any('Qt warn' in m for m in msgs))

    def test_qt_message_handler_fatal_exits(self):
        with self.assertRaises(SystemExit):
            qt_message_handler(QtMsgType.QtFatalMsg, None, 'fatal')

    def test_setup_logging_installs_tank_handler_only(self):
        self.assertEqual(
            [type(h) for h in self.root_logger.handlers],
            [TankHandler],
        )

    def test_setup_logging_quiets_http_loggers(self):
        for name in QUIET_LOGGERS:
            self.assertEqual(logging.getLogger(name).level, logging.WARNING)

    def test_setup_logging_with_stream_handler(self):
        log.setup_logging(enable_stream_handler=True, enable_qt_handler=False, log_level=logging.INFO)
        types = [type(h) for h in logging.getLogger().handlers]
        self.assertIn(logging.StreamHandler, types)
        self.assertIn(TankHandler, types)
        self.assertEqual(logging.getLogger().level, logging.INFO)
