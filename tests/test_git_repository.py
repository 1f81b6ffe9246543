import shutil

import pytest

pytest.importorskip("git")

from comma.errors import VersionControlError  # noqa: E402
from comma.vcs.git_repository import (  # noqa: E402
    GitRepository,
    detect_project_type,
    parse_porcelain_status,
)
from comma.vcs.models import ChangedFile  # noqa: E402

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available")


def test_parse_porcelain_status():
    output = "\n".join([
        "A  src/new.py",
        " M README.md",
        "D  old.py",
        "R  before.py -> after.py",
        "?? scratch.txt",
        "MM both.py",
        "",
    ])

    assert parse_porcelain_status(output) == [
        ChangedFile("src/new.py", "A"),
        ChangedFile("README.md", "M"),
        ChangedFile("old.py", "D"),
        ChangedFile("after.py", "R"),
        ChangedFile("scratch.txt", "??"),
        ChangedFile("both.py", "M"),
    ]


def test_detect_project_type(tmp_path):
    assert detect_project_type(tmp_path) == ""

    (tmp_path / "pyproject.toml").write_text("")
    assert detect_project_type(tmp_path) == "python"

    (tmp_path / "go.mod").write_text("")
    assert detect_project_type(tmp_path) == "go"


def test_not_a_repository(tmp_path):
    with pytest.raises(VersionControlError):
        GitRepository(str(tmp_path / "missing"))


@needs_git
def test_staged_changes_and_commit(tmp_path):
    import git

    repo = git.Repo.init(tmp_path)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")

    (tmp_path / "greeter.py").write_text("def greet(name):\n    return name\n")
    repo.index.add(["greeter.py"])

    vcs = GitRepository(str(tmp_path))

    assert "+def greet(name):" in vcs.get_changed_diff(staged=True)
    assert vcs.get_changed_files() == [ChangedFile("greeter.py", "A")]
    assert vcs.get_remote_url() is None

    vcs.commit("feat: add greeter")

    context = vcs.get_repository_context()
    assert context.repo_name == tmp_path.name
    assert context.last_commit_message == "feat: add greeter"
    assert vcs.get_changed_diff(staged=True) == ""
