"""Tests for HEAD and branch references."""

import pytest

from cairn.errors import InvalidPathError, MalformedObjectError, NotFoundError
from cairn.refs import HeadRef, RefStore

COMMIT_A = "a" * 40
COMMIT_B = "b" * 40


@pytest.fixture
def refs(tmp_path):
    store = RefStore(tmp_path)
    store.set_head_branch("master")
    return store


def test_fresh_repository_has_no_commit(refs):
    assert refs.resolve_head() is None
    assert refs.current_branch() == "master"


def test_empty_branch_file_means_no_commit(refs, tmp_path):
    branch = tmp_path / ".cairn" / "refs" / "heads" / "master"
    branch.parent.mkdir(parents=True)
    branch.write_text("")
    
    assert refs.resolve_head() is None


def test_update_head_writes_branch(refs, tmp_path):
    refs.update_head(COMMIT_A)
    
    assert refs.resolve_head() == COMMIT_A
    assert (tmp_path / ".cairn" / "refs" / "heads" / "master").read_text().strip() == COMMIT_A
    assert refs.read_head() == HeadRef(symbolic=True, value="refs/heads/master")


def test_update_head_moves_branch_forward(refs):
    refs.update_head(COMMIT_A)
    refs.update_head(COMMIT_B)
    
    assert refs.resolve_head() == COMMIT_B
    assert refs.read_branch("master") == COMMIT_B


def test_detached_head(refs, tmp_path):
    (tmp_path / ".cairn" / "HEAD").write_text(COMMIT_A + "\n")
    
    assert refs.read_head() == HeadRef(symbolic=False, value=COMMIT_A)
    assert refs.resolve_head() == COMMIT_A
    assert refs.current_branch() is None
    
    refs.update_head(COMMIT_B)
    
    assert (tmp_path / ".cairn" / "HEAD").read_text().strip() == COMMIT_B
    assert refs.read_branch("master") is None


def test_nested_symbolic_ref_is_rejected(refs, tmp_path):
    branch = tmp_path / ".cairn" / "refs" / "heads" / "master"
    branch.parent.mkdir(parents=True)
    branch.write_text("ref: refs/heads/other\n")
    
    with pytest.raises(MalformedObjectError):
        refs.resolve_head()


def test_missing_head(tmp_path):
    with pytest.raises(NotFoundError):
        RefStore(tmp_path).resolve_head()


def test_branch_names_cannot_escape(refs):
    with pytest.raises(InvalidPathError):
        refs.set_head_branch("../../../outside")


def test_list_branches(refs):
    refs.update_head(COMMIT_A)
    refs.set_head_branch("feature/x")
    refs.update_head(COMMIT_B)
    
    assert refs.list_branches() == ["feature/x", "master"]
    assert refs.read_branch("feature/x") == COMMIT_B
