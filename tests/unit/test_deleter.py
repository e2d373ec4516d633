"""Unit tests for TreeDeleter and remote path helpers."""

from unittest.mock import Mock

import pytest

from ftptree.ftp.connection import FTPSession
from ftptree.ftp.deleter import TreeDeleter, delete_tree
from ftptree.ftp.exceptions import FTPNotConnectedError, FTPPathError, FTPRmdirError
from ftptree.ftp.mirror import TreeMirror
from ftptree.ftp.paths import entry_path, remote_dir_path, resolve_remote_dir


@pytest.fixture
def populated(remote, local_tree):
    """Remote filesystem holding the mirrored /r tree."""
    TreeMirror(remote).mirror(local_tree, "/r/")
    return remote


class TestRemotePaths:
    """Tests for remote path helpers."""

    def test_remote_dir_path(self):
        assert remote_dir_path("/r") == "/r/"
        assert remote_dir_path("/r///") == "/r/"
        assert remote_dir_path("/") == "/"

    def test_resolve_remote_dir(self):
        assert resolve_remote_dir("/home", "site") == "/home/site/"
        assert resolve_remote_dir("/home", "/abs/") == "/abs/"
        assert resolve_remote_dir("/home", ".") == "/home/"
        assert resolve_remote_dir("/", "") == "/"

    def test_entry_path(self):
        assert entry_path("/r/", "b.txt") == "/r/b.txt"
        assert entry_path("/r", "b.txt") == "/r/b.txt"
        assert entry_path("/r/", "/r/b.txt") == "/r/b.txt"
        assert entry_path("/r/", ".") is None
        assert entry_path("/r/", "..") is None
        assert entry_path("/r/", "/r/.") is None


class TestTreeDeleter:
    """Tests for TreeDeleter.delete_tree."""

    def test_deletes_whole_tree(self, populated):
        """Test files, subdirectories and the root are all removed."""
        result = TreeDeleter(populated).delete_tree("/r/")

        assert result.files_deleted == 2
        assert result.directories_removed == 2
        assert populated.dirs == {"/"}
        assert populated.files == {}

        with pytest.raises(FTPPathError):
            populated.list_entries("/r/")
        assert populated.change_directory("/r/") is False

    def test_normalizes_trailing_separator(self, populated):
        result = TreeDeleter(populated).delete_tree("/r///")
        assert result.remote_dir == "/r/"
        assert populated.dirs == {"/"}

    def test_full_path_listings(self, populated):
        """Test servers that answer NLST with full paths."""
        populated.full_path_listing = True
        TreeDeleter(populated).delete_tree("/r")
        assert populated.dirs == {"/"}

    def test_dot_entries_ignored(self, populated):
        """Test '.' and '..' never cause recursion."""
        populated.include_dot_entries = True
        TreeDeleter(populated).delete_tree("/r")
        assert populated.dirs == {"/"}

    def test_unlistable_empty_directory_is_removed(self, remote):
        """Test a listing failure is treated as an empty directory."""
        remote.dirs.add("/locked")
        remote.unlistable.add("/locked")

        result = TreeDeleter(remote).delete_tree("/locked")

        assert result.directories_removed == 1
        assert "/locked" not in remote.dirs

    def test_unlistable_non_empty_directory_fails_on_rmdir(self, populated):
        """Test a listing failure over real contents surfaces at RMD."""
        populated.unlistable.add("/r/c")

        with pytest.raises(FTPRmdirError) as exc_info:
            TreeDeleter(populated).delete_tree("/r")

        assert exc_info.value.path == "/r/c/"
        assert "/r/c/d.php" in populated.files

    def test_undeletable_file_surfaces_as_rmdir_error(self, populated):
        """Test a stubborn file is indistinguishable from a stuck directory."""
        populated.undeletable.add("/r/c/d.php")

        with pytest.raises(FTPRmdirError) as exc_info:
            TreeDeleter(populated).delete_tree("/r/")

        assert exc_info.value.path == "/r/c/d.php/"
        # Earlier work is not rolled back
        assert "/r/b.txt" not in populated.files
        assert "/r/c" in populated.dirs

    def test_missing_directory(self, remote):
        """Test deleting something that is not there fails at RMD."""
        with pytest.raises(FTPRmdirError):
            TreeDeleter(remote).delete_tree("/nothing")

    @pytest.mark.parametrize("target", ["", "   "])
    def test_empty_target_is_rejected(self, populated, target):
        """Test an empty path never resolves to the server root."""
        populated.files["/top.txt"] = (b"keep", None)

        with pytest.raises(FTPPathError):
            TreeDeleter(populated).delete_tree(target)

        assert "/top.txt" in populated.files
        assert "/r/b.txt" in populated.files
        assert populated.dirs == {"/", "/r", "/r/c"}

    def test_listing_echoing_the_file_itself(self):
        """Test a listing that echoes the path back does not recurse forever."""
        session = Mock(spec=FTPSession)
        session.list_entries.return_value = ["/r/x"]
        session.delete_file.return_value = False
        session.remove_directory.side_effect = FTPRmdirError("/r/x/")

        with pytest.raises(FTPRmdirError):
            TreeDeleter(session).delete_tree("/r/x")

        session.list_entries.assert_called_once_with("/r/x/")

    def test_not_connected_propagates(self):
        """Test connection errors are not mistaken for empty listings."""
        session = Mock(spec=FTPSession)
        session.list_entries.side_effect = FTPNotConnectedError("List")

        with pytest.raises(FTPNotConnectedError):
            TreeDeleter(session).delete_tree("/r")
        session.remove_directory.assert_not_called()

    def test_module_function(self, populated):
        delete_tree(populated, "/r")
        assert populated.dirs == {"/"}
