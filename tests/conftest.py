import pytest

from mygit import data


@pytest.fixture
def worktree(tmp_path):
    return tmp_path


@pytest.fixture
def git_dir(worktree):
    path = str(worktree / data.GIT_DIR_NAME)
    data.init(path)
    return path
