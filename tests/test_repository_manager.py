from pathlib import Path
from unittest.mock import MagicMock

import pytest
from git import GitCommandError, InvalidGitRepositoryError, Repo

from remote_deployer.config import AppConfig
from remote_deployer.error_handling import (
    ManifestNotFoundError,
    RepositoryError,
    EXIT_MANIFEST_NOT_FOUND,
)
from remote_deployer.models import DeploymentStrategy, Repository
from remote_deployer.repository import (
    PLACEHOLDER_REQUIREMENTS,
    RepositoryManager,
    build_authenticated_url,
    redact_url,
)

MODULE = "remote_deployer.repository.repository_manager"
URL = "https://github.com/acme/shop.git"


def _manager(tmp_path) -> RepositoryManager:
    return RepositoryManager(AppConfig(), workspace=tmp_path)


def _fake_git_repo(sha="a" * 40):
    git_repo = MagicMock()
    git_repo.head.commit.hexsha = sha
    return git_repo


def _checkout(tmp_path, *files) -> Repository:
    path = tmp_path / "shop"
    path.mkdir()
    for name in files:
        (path / name).write_text("")
    return Repository(url=URL, name="shop", local_path=str(path), sync_action="cloned")


def test_build_authenticated_url_inserts_token():
    assert build_authenticated_url(URL, "tok") == "https://tok@github.com/acme/shop.git"


def test_build_authenticated_url_leaves_other_urls_alone():
    assert build_authenticated_url(URL, None) == URL
    assert build_authenticated_url("git@github.com:acme/shop.git", "tok") == "git@github.com:acme/shop.git"


def test_redact_url_hides_token():
    assert redact_url("https://tok@github.com/acme/shop.git", "tok") == "https://***@github.com/acme/shop.git"


def test_sync_clones_when_directory_is_missing(tmp_path, monkeypatch):
    git_repo = _fake_git_repo()
    clone_from = MagicMock(return_value=git_repo)
    monkeypatch.setattr(f"{MODULE}.Repo.clone_from", clone_from)

    repository = _manager(tmp_path).sync_repository(URL, "develop", "tok")

    clone_from.assert_called_once_with(
        "https://tok@github.com/acme/shop.git", str(tmp_path / "shop"), branch="develop"
    )
    git_repo.remotes.origin.set_url.assert_called_once_with(URL)
    assert repository.sync_action == "cloned"
    assert repository.branch == "develop"
    assert repository.commit_sha == "a" * 40


def test_sync_pulls_when_directory_exists(tmp_path, monkeypatch):
    (tmp_path / "shop").mkdir()
    git_repo = _fake_git_repo()
    repo_cls = MagicMock(return_value=git_repo)
    clone_from = MagicMock()
    repo_cls.clone_from = clone_from
    monkeypatch.setattr(f"{MODULE}.Repo", repo_cls)

    repository = _manager(tmp_path).sync_repository(URL, "main", None)

    repo_cls.assert_called_once_with(str(tmp_path / "shop"))
    git_repo.git.pull.assert_called_once_with("origin", "main")
    clone_from.assert_not_called()
    assert repository.sync_action == "pulled"


def test_pull_uses_authenticated_url_when_token_given(tmp_path, monkeypatch):
    (tmp_path / "shop").mkdir()
    git_repo = _fake_git_repo()
    monkeypatch.setattr(f"{MODULE}.Repo", MagicMock(return_value=git_repo))

    _manager(tmp_path).sync_repository(URL, "main", "tok")

    git_repo.git.pull.assert_called_once_with("https://tok@github.com/acme/shop.git", "main")


def test_existing_directory_that_is_not_a_repository_fails(tmp_path, monkeypatch):
    (tmp_path / "shop").mkdir()
    monkeypatch.setattr(f"{MODULE}.Repo", MagicMock(side_effect=InvalidGitRepositoryError("shop")))

    with pytest.raises(RepositoryError) as excinfo:
        _manager(tmp_path).sync_repository(URL, "main", None)

    assert excinfo.value.operation == "pull"


def test_clone_failure_uses_git_status_and_hides_token(tmp_path, monkeypatch):
    error = GitCommandError(
        ["git", "clone", "https://tok@github.com/acme/shop.git"], 128, stderr="fatal: repository not found"
    )
    monkeypatch.setattr(f"{MODULE}.Repo.clone_from", MagicMock(side_effect=error))

    try:
        _manager(tmp_path).sync_repository(URL, "main", "tok")
    except RepositoryError as exc:
        assert exc.exit_code == 128
        assert "tok" not in str(exc)
        assert "repository not found" in str(exc)
    else:
        raise AssertionError("expected RepositoryError to be raised")


def test_dockerfile_selects_single_container(tmp_path):
    repository = _checkout(tmp_path, "Dockerfile")

    assert _manager(tmp_path).detect_strategy(repository) is DeploymentStrategy.SINGLE_CONTAINER
    assert repository.strategy is DeploymentStrategy.SINGLE_CONTAINER


def test_compose_file_selects_compose(tmp_path):
    repository = _checkout(tmp_path, "docker-compose.yml")

    assert _manager(tmp_path).detect_strategy(repository) is DeploymentStrategy.COMPOSE


def test_dockerfile_takes_precedence_over_compose(tmp_path):
    repository = _checkout(tmp_path, "Dockerfile", "docker-compose.yml")

    assert _manager(tmp_path).detect_strategy(repository) is DeploymentStrategy.SINGLE_CONTAINER


def test_missing_manifest_exits_with_code_10(tmp_path):
    repository = _checkout(tmp_path, "README.md")

    with pytest.raises(ManifestNotFoundError) as excinfo:
        _manager(tmp_path).detect_strategy(repository)

    assert excinfo.value.exit_code == EXIT_MANIFEST_NOT_FOUND == 10


def test_placeholder_requirements_offered_when_missing(tmp_path):
    repository = _checkout(tmp_path, "Dockerfile")

    assert _manager(tmp_path).requirements_placeholder(repository) == PLACEHOLDER_REQUIREMENTS
    assert not (tmp_path / "shop" / "requirements.txt").exists()


def test_existing_requirements_left_untouched(tmp_path):
    repository = _checkout(tmp_path, "Dockerfile")
    (tmp_path / "shop" / "requirements.txt").write_text("django\n")

    assert _manager(tmp_path).requirements_placeholder(repository) is None
    assert (tmp_path / "shop" / "requirements.txt").read_text() == "django\n"


def _commit(git_repo, name, content):
    (Path(git_repo.working_tree_dir) / name).write_text(content)
    git_repo.index.add([name])
    git_repo.index.commit(f"add {name}")


def test_second_sync_pulls_after_upstream_adds_requirements(tmp_path):
    upstream_path = tmp_path / "upstream" / "shop"
    upstream_path.mkdir(parents=True)
    upstream = Repo.init(upstream_path)
    _commit(upstream, "Dockerfile", "FROM python:3.12-slim\n")
    upstream.git.branch("-M", "main")

    manager = RepositoryManager(AppConfig(), workspace=tmp_path / "work")
    first = manager.sync_repository(str(upstream_path), "main")
    assert first.sync_action == "cloned"
    assert manager.requirements_placeholder(first) == PLACEHOLDER_REQUIREMENTS

    _commit(upstream, "requirements.txt", "django\n")
    second = manager.sync_repository(str(upstream_path), "main")

    assert second.sync_action == "pulled"
    assert second.commit_sha == upstream.head.commit.hexsha
    assert (tmp_path / "work" / "shop" / "requirements.txt").read_text() == "django\n"
    assert manager.requirements_placeholder(second) is None


def test_upload_list_skips_git_metadata(tmp_path):
    repository = _checkout(tmp_path, "Dockerfile", "app.py")
    (tmp_path / "shop" / ".git").mkdir()
    (tmp_path / "shop" / ".git" / "config").write_text("")
    (tmp_path / "shop" / "static").mkdir()
    (tmp_path / "shop" / "static" / "site.css").write_text("")

    files = [path.as_posix() for path in _manager(tmp_path).list_upload_files(repository)]

    assert files == ["Dockerfile", "app.py", "static/site.css"]
