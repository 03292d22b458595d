import contextlib
import io
import logging
import os
import subprocess
import sys
import tempfile

from unittest import mock

from rdat import dump
from rdat.lib import json

from .lib.dxil import ContainerBuilder
from . import TestBase


class TestDump(TestBase):

    def setUp(self):
        super().setUp()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        patch = mock.patch.object(dump.environment.colorless, 'value', True)
        patch.start()
        self.addCleanup(patch.stop)

    def _file(self, name, data):
        path = os.path.join(self.tmp.name, name)
        with open(path, 'wb') as stream:
            stream.write(data)
        return path

    def _sample(self):
        b = ContainerBuilder()
        b.resource('cb', id=2, space=1)
        b.function('\x01?main@@YAXXZ', 'main', resources=[0], dependencies=['helper'])
        return self._file('sample.rdat', b.build())

    def _run(self, *argv):
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            code = dump.main(list(argv))
        return code, output.getvalue()

    def test_json_output(self):
        code, output = self._run(self._sample())
        self.assertEqual(code, 0)
        data = json.loads(output.encode('utf8'))
        self.assertEqual(data['functions'][0]['unmangled_name'], 'main')
        self.assertEqual(data['resources'][0]['space'], 1)

    def test_summary_output(self):
        code, output = self._run('-s', self._sample())
        self.assertEqual(code, 0)
        self.assertIn('1 functions, 1 resources', output)
        self.assertIn('cb CBuffer id=2 space=1', output)
        self.assertIn('uses cb', output)
        self.assertIn('calls helper', output)

    def test_dedup_option(self):
        code, _ = self._run('-d', 'location', self._sample())
        self.assertEqual(code, 0)

    def test_multiple_files(self):
        sample = self._sample()
        other = self._file('other.rdat', ContainerBuilder().build())
        code, output = self._run('-s', sample, other)
        self.assertEqual(code, 0)
        self.assertIn(sample, output)
        self.assertIn(other, output)
        self.assertIn('0 functions, 0 resources', output)

    def test_failures(self):
        broken = self._file('broken.rdat', b'\x07\0\0\0')
        missing = os.path.join(self.tmp.name, 'missing.rdat')
        code, output = self._run(broken, missing, self._sample())
        self.assertEqual(code, 1)
        self.assertIn('main', output)

    def test_verbosity_from_environment_is_kept(self):
        root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        script = (
            'import logging, sys, rdat.dump\n'
            'rdat.dump.main(sys.argv[1:])\n'
            'print(logging.getLogger("rdat.lib.dxil.runtime").level)\n'
        )
        env = dict(os.environ, RDAT_VERBOSITY='DEBUG', RDAT_COLORLESS='1')
        env['PYTHONPATH'] = os.pathsep.join(p for p in (root, env.get('PYTHONPATH')) if p)
        result = subprocess.run(
            [sys.executable, '-c', script, self._sample()],
            env=env,
            cwd=root,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
        )
        self.assertEqual(result.stdout.decode('utf8').split()[-1], str(logging.DEBUG))

    def test_verbose_switch_overrides_level(self):
        names = ('rdat', 'rdat.lib.dxil.runtime')
        loggers = [logging.getLogger(name) for name in names]
        for log in loggers:
            self.addCleanup(log.setLevel, log.level)
            log.setLevel(logging.DEBUG)
        sample = self._sample()
        self._run(sample)
        for log in loggers:
            self.assertEqual(log.level, logging.DEBUG)
        self._run('-v', sample)
        for log in loggers:
            self.assertEqual(log.level, logging.INFO)
