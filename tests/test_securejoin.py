import errno
import os

import pytest

from mmadapter.securejoin import secure_join


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


@pytest.mark.parametrize(
    ("paths", "expected"),
    [
        (["a", "b/c.txt"], "a/b/c.txt"),
        (["a", "../../b.txt"], "a/b.txt"),
        (["a", "../../b", "c.txt"], "a/b/c.txt"),
        (["a", "./b.txt"], "a/b.txt"),
        (["a", "/b"], "a/b"),
        (["/a/b", "c.txt"], "/a/b/c.txt"),
    ],
)
def test_secure_join(paths, expected):
    assert secure_join(*paths) == expected


@pytest.mark.parametrize("paths", [[], ["only-one"]])
def test_needs_two_parameters(paths):
    with pytest.raises(ValueError, match="Expected at least 2 parameters"):
        secure_join(*paths)


def test_empty_unsafe_path_returns_root():
    assert secure_join("/models", "") == "/models"


def test_absolute_symlink_is_scoped_to_root(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    os.symlink("/etc", root / "link")
    assert secure_join(str(root), "link/passwd") == str(root / "etc" / "passwd")


def test_relative_symlink_cannot_escape(tmp_path):
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    os.symlink("../../../outside", root / "sub" / "up")
    assert secure_join(str(root), "sub/up/file") == str(root / "outside" / "file")


def test_symlink_inside_root_is_followed(tmp_path):
    root = tmp_path / "root"
    (root / "real").mkdir(parents=True)
    os.symlink("real", root / "alias")
    assert secure_join(str(root), "alias/model.bin") == str(root / "real" / "model.bin")


def test_symlink_loop_raises(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    os.symlink("loop", root / "loop")
    with pytest.raises(OSError) as info:
        secure_join(str(root), "loop")
    assert info.value.errno == errno.ELOOP