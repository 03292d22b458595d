import logging
import os

from unittest import mock

from rdat.lib.dxil.constants import StringDeduplication
from rdat.lib.environment import (
    EVBool,
    EVEnum,
    EVLog,
    LogLevel,
    RdatFormatter,
    logger,
)

from .. import TestBase


class TestEnvironment(TestBase):

    def _with(self, **values):
        return mock.patch.dict(os.environ, {F'RDAT_{k}': v for k, v in values.items()})

    def test_bool(self):
        for value, expected in [
            ('1', True),
            ('0', False),
            ('yes', True),
            ('off', False),
            ('False', False),
            ('', False),
        ]:
            with self._with(TEST=value):
                self.assertEqual(EVBool('TEST').value, expected, msg=value)
        self.assertFalse(EVBool('SURELY_NOT_SET').value)

    def test_log(self):
        with self._with(TEST='2'):
            self.assertEqual(EVLog('TEST').value, LogLevel.DEBUG)
        with self._with(TEST='info'):
            self.assertEqual(EVLog('TEST').value, LogLevel.INFO)
        with self._with(TEST='detached'):
            self.assertEqual(EVLog('TEST').value, LogLevel.DETACHED)
        with self._with(TEST='chatty'):
            self.assertIsNone(EVLog('TEST').value)
        self.assertIsNone(EVLog('SURELY_NOT_SET').value)

    def test_deduplication(self):
        def setting():
            return EVEnum('TEST', StringDeduplication, StringDeduplication.CONTENT).value
        with self._with(TEST='location'):
            self.assertIs(setting(), StringDeduplication.LOCATION)
        with self._with(TEST=' Content '):
            self.assertIs(setting(), StringDeduplication.CONTENT)
        with self._with(TEST='pointer'):
            self.assertIs(setting(), StringDeduplication.CONTENT)
        self.assertIs(setting(), StringDeduplication.CONTENT)

    def test_verbosity_roundtrip(self):
        for verbosity in range(-1, 3):
            self.assertEqual(LogLevel.FromVerbosity(verbosity).verbosity, verbosity)
        self.assertEqual(LogLevel.FromVerbosity(7), LogLevel.DEBUG)

    def test_formatter(self):
        formatter = RdatFormatter('{custom_level_name}: {message}', style='{')
        record = logging.LogRecord('rdat', logging.WARNING, __file__, 1, 'careful', None, None)
        self.assertEqual(formatter.format(record), 'warning: careful')
        record = logging.LogRecord('rdat', logging.ERROR, __file__, 1, 'broken', None, None)
        self.assertEqual(formatter.format(record), 'failure: broken')

    def test_logger_does_not_propagate(self):
        log = logger('rdat.test.environment')
        self.assertIs(logger('rdat.test.environment'), log)
        self.assertLessEqual(len(log.handlers), 1)
        self.assertFalse(log.propagate)
