import os
from pathlib import Path

import pytest

from aistor_mcp.errors import PathNotAllowedError
from aistor_mcp.tools.fs import check_path_allowed, list_local_files, normalize_path, validate_path


def test_accepts_paths_under_allowed_root(sandbox):
    target = sandbox / "sub" / "file.txt"
    assert validate_path(str(target), [str(sandbox)]) == target.resolve()


def test_rejects_path_outside(tmp_path, sandbox):
    outside = tmp_path / "outside" / "secret.txt"
    with pytest.raises(PathNotAllowedError, match="Access denied"):
        validate_path(str(outside), [str(sandbox)])


def test_rejects_dotdot_traversal(sandbox):
    with pytest.raises(PathNotAllowedError):
        validate_path(str(sandbox / ".." / "escape.txt"), [str(sandbox)])


def test_prefix_sibling_is_not_inside(tmp_path, sandbox):
    # "/x/sandbox2" shares a string prefix with "/x/sandbox" but is a sibling
    sibling = tmp_path / "sandbox2"
    sibling.mkdir()
    assert check_path_allowed(sibling.resolve(), [str(sandbox)]) is False


def test_symlink_escape_rejected(tmp_path, sandbox):
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "target.txt").write_text("target")

    link = sandbox / "link_out"
    try:
        os.symlink(outside / "target.txt", link)
    except OSError:
        pytest.skip("Symlinks not supported")

    with pytest.raises(PathNotAllowedError):
        validate_path(str(link), [str(sandbox)])


def test_empty_allowed_set_grants_nothing(sandbox):
    with pytest.raises(PathNotAllowedError):
        validate_path(str(sandbox / "a.txt"), [])


@pytest.mark.parametrize("bad", ["", "   ", "/tmp/a\x00b"])
def test_normalize_rejects_unsafe_input(bad):
    with pytest.raises(PathNotAllowedError):
        normalize_path(bad)


def test_list_local_files_entries(sandbox):
    (sandbox / "b.txt").write_text("hello")
    (sandbox / "a_dir").mkdir()

    resolved, listing = list_local_files(str(sandbox), [str(sandbox)])

    assert resolved == sandbox.resolve()
    assert [e["name"] for e in listing.items] == ["a_dir", "b.txt"]
    file_entry = listing.items[1]
    assert file_entry["type"] == "file"
    assert file_entry["size"] == 5
    assert file_entry["size_human"] == "5 Bytes"
    assert file_entry["path"] == str(sandbox.resolve() / "b.txt")
    assert listing.items[0]["type"] == "directory"
    assert listing.truncated is False


def test_list_local_files_bounded(sandbox):
    for i in range(5):
        (sandbox / f"f{i}.txt").write_text("x")

    _, listing = list_local_files(str(sandbox), [str(sandbox)], max_entries=3)

    assert len(listing) == 3
    assert listing.truncated is True


def test_list_local_files_missing_dir(sandbox):
    with pytest.raises(FileNotFoundError):
        list_local_files(str(sandbox / "nope"), [str(sandbox)])


def test_list_local_files_on_file(sandbox):
    f = sandbox / "file.txt"
    f.write_text("x")
    with pytest.raises(NotADirectoryError):
        list_local_files(str(f), [str(sandbox)])


def test_home_expansion(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert normalize_path("~/x") == Path(tmp_path, "x").resolve()
