import os
import unittest

from pathlib import Path
from tempfile import TemporaryDirectory

from atmfjstc.lib.pac_extractor.output import ensure_directory, resolve_output_path, remove_stale_output
from atmfjstc.lib.pac_extractor.errors import OutputWriteError


class OutputHelpersTest(unittest.TestCase):
    def setUp(self):
        self._temp_dir = TemporaryDirectory()
        self.base_dir = Path(self._temp_dir.name)

    def tearDown(self):
        self._temp_dir.cleanup()

    def test_ensure_directory_nested(self):
        target = self.base_dir / 'a' / 'b' / 'c'

        self.assertTrue(ensure_directory(target))
        self.assertTrue(target.is_dir())
        self.assertFalse(ensure_directory(target))

    def test_ensure_directory_existing(self):
        self.assertFalse(ensure_directory(str(self.base_dir)))

    def test_ensure_directory_blocked_by_file(self):
        (self.base_dir / 'a').write_bytes(b'')

        with self.assertRaises(OutputWriteError):
            ensure_directory(self.base_dir / 'a')
        with self.assertRaises(OutputWriteError):
            ensure_directory(self.base_dir / 'a' / 'b')

    def test_resolve_output_path(self):
        self.assertEqual(resolve_output_path(self.base_dir, 'boot.img'), self.base_dir / 'boot.img')
        self.assertEqual(resolve_output_path(self.base_dir, 'sub/boot.img'), self.base_dir / 'sub' / 'boot.img')

    def test_resolve_output_path_rejects(self):
        for bad_name in ['', '..', '../x', '/etc/passwd', 'x/../..']:
            with self.assertRaises(OutputWriteError):
                resolve_output_path(self.base_dir, bad_name)

    def test_remove_stale_output(self):
        path = self.base_dir / 'old.bin'
        path.write_bytes(b'old')

        remove_stale_output(path)
        self.assertFalse(path.exists())

        remove_stale_output(path)

    def test_bytes_paths(self):
        target = self.base_dir / 'a' / 'b'

        self.assertTrue(ensure_directory(os.fsencode(target)))
        self.assertTrue(target.is_dir())
        self.assertEqual(resolve_output_path(os.fsencode(target), 'boot.img'), target / 'boot.img')

        with self.assertRaises(OutputWriteError):
            resolve_output_path(os.fsencode(target), '../boot.img')
