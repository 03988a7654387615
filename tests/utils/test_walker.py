import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from finddup.utils.walker import FileContext, WalkPolicy, walk_with_policy

from ..test_utils import failing_iterdir, make_tree


class FileContextTest(unittest.TestCase):
    """Test FileContext class functionality."""

    def test_stat_lazy_loading(self):
        """Stat is loaded from the path on first access and then cached."""
        with tempfile.TemporaryDirectory() as tmpdir:
            test_file = Path(tmpdir) / "test.txt"
            test_file.write_text("content")

            context = FileContext(test_file)
            self.assertIsNone(context._stat)

            st = context.stat
            self.assertEqual(7, st.st_size)
            self.assertIs(st, context.stat)
            self.assertTrue(context.is_file())
            self.assertFalse(context.is_dir())

    def test_stat_provided_directly(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            st = Path(tmpdir).stat()

            context = FileContext(st=st)

            self.assertIs(st, context.stat)
            self.assertTrue(context.is_dir())

    def test_stat_raises_when_unavailable(self):
        context = FileContext()

        with self.assertRaises(LookupError) as cm:
            _ = context.stat

        self.assertIn("stat not available", str(cm.exception))

    def test_stat_does_not_follow_symlinks(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "target"
            target.write_text("content")
            link = Path(tmpdir) / "link"
            link.symlink_to(target)

            context = FileContext(link)
            self.assertTrue(context.is_symlink())
            self.assertFalse(context.is_file())


class WalkWithPolicyTest(unittest.TestCase):
    """Test walk_with_policy() traversal."""

    def _walk(self, root: Path):
        errors = []
        policy = WalkPolicy(on_error=lambda path, error: errors.append((path, error)))
        files = {path: context.stat.st_size for path, context in walk_with_policy(root, policy)}
        return files, errors

    def test_yields_regular_files_recursively(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            make_tree(root, {
                'a.txt': b'12345',
                'sub/b.txt': b'1',
                'sub/deeper/c.txt': b'',
            })

            files, errors = self._walk(root)

            self.assertEqual({
                root / 'a.txt': 5,
                root / 'sub' / 'b.txt': 1,
                root / 'sub' / 'deeper' / 'c.txt': 0,
            }, files)
            self.assertEqual([], errors)

    def test_directories_are_not_yielded(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / 'empty').mkdir()
            (root / 'nested' / 'empty').mkdir(parents=True)

            files, errors = self._walk(root)

            self.assertEqual({}, files)
            self.assertEqual([], errors)

    def test_paths_are_joined_to_root_as_given(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            make_tree(Path(tmpdir), {'dir/file': b'x'})
            root = Path(tmpdir) / 'dir'

            files, _ = self._walk(root)

            self.assertEqual([root / 'file'], list(files))

    def test_symlinks_are_skipped(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / 'root'
            outside = Path(tmpdir) / 'outside'
            make_tree(root, {'file': b'x'})
            make_tree(outside, {'other': b'y'})
            (root / 'file_link').symlink_to(root / 'file')
            (root / 'dir_link').symlink_to(outside, target_is_directory=True)
            (root / 'loop').symlink_to(root, target_is_directory=True)

            files, errors = self._walk(root)

            self.assertEqual([root / 'file'], list(files))
            self.assertEqual([], errors)

    def test_symlinked_root_is_scanned(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            real = Path(tmpdir) / 'real'
            make_tree(real, {'file': b'x'})
            link = Path(tmpdir) / 'link'
            link.symlink_to(real, target_is_directory=True)

            files, _ = self._walk(link)

            self.assertEqual([link / 'file'], list(files))

    @unittest.skipUnless(hasattr(os, 'mkfifo'), "requires os.mkfifo")
    def test_special_files_are_skipped(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            os.mkfifo(root / 'fifo')
            (root / 'file').write_bytes(b'x')

            files, errors = self._walk(root)

            self.assertEqual([root / 'file'], list(files))
            self.assertEqual([], errors)

    def test_missing_root_is_reported(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / 'missing'

            files, errors = self._walk(root)

            self.assertEqual({}, files)
            self.assertEqual(1, len(errors))
            self.assertEqual(root, errors[0][0])
            self.assertIsInstance(errors[0][1], FileNotFoundError)

    def test_file_as_root_is_reported(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / 'file'
            root.write_bytes(b'x')

            files, errors = self._walk(root)

            self.assertEqual({}, files)
            self.assertEqual(1, len(errors))
            self.assertIsInstance(errors[0][1], NotADirectoryError)

    def test_unlistable_directory_does_not_stop_walk(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            make_tree(root, {
                'blocked/hidden': b'x',
                'open/visible': b'y',
                'top': b'z',
            })

            with mock.patch.object(Path, 'iterdir', failing_iterdir(root / 'blocked')):
                files, errors = self._walk(root)

            self.assertEqual({root / 'open' / 'visible', root / 'top'}, set(files))
            self.assertEqual(1, len(errors))
            self.assertEqual(root / 'blocked', errors[0][0])
            self.assertIsInstance(errors[0][1], PermissionError)

    def test_deep_tree_beyond_recursion_limit(self):
        """Depth is bounded by memory, not by the interpreter's recursion limit."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            directory = root
            # Short names keep the full path under PATH_MAX
            for _ in range(1200):
                directory = directory / 'd'
            try:
                directory.mkdir(parents=True)
            except OSError:
                self.skipTest("file system cannot hold a tree this deep")
            (directory / 'f').write_bytes(b'x')

            files, errors = self._walk(root)

            self.assertEqual([directory / 'f'], list(files))
            self.assertEqual([], errors)


if __name__ == '__main__':
    unittest.main()
