"""
Repository manager for syncing the application source and inspecting its manifests.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union
from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from ..config import AppConfig, get_config
from ..error_handling import RepositoryError, ManifestNotFoundError
from ..models import DeploymentStrategy, Repository, parse_repository_name

logger = logging.getLogger(__name__)


DOCKERFILE = "Dockerfile"
PLACEHOLDER_REQUIREMENTS = "# Auto-generated placeholder requirements file\nflask\n"


def build_authenticated_url(repo_url: str, access_token: Optional[str]) -> str:
    """
    Embed an access token into an HTTPS clone URL.

    ``https://github.com/u/r.git`` becomes ``https://<token>@github.com/u/r.git``.
    URLs with other schemes, or calls without a token, are returned unchanged.
    """
    if not access_token or not repo_url.startswith("https://"):
        return repo_url
    return f"https://{access_token}@{repo_url[len('https://'):]}"


def redact_url(url: str, access_token: Optional[str]) -> str:
    """Replace the token in ``url`` so it can be logged."""
    if access_token:
        return url.replace(access_token, "***")
    return url


def _git_exit_code(error: GitCommandError) -> int:
    status = error.status
    if isinstance(status, int) and status > 0:
        return status
    return 1


class RepositoryManager:
    """
    Keeps a local checkout of the application repository in sync.

    Clones into ``<workspace>/<repo name>`` when the directory is missing and
    pulls the requested branch when it already exists. Also decides the
    deployment strategy from the manifests found in the checkout root.
    """

    def __init__(self, config: Optional[AppConfig] = None, workspace: Optional[Union[str, Path]] = None):
        """
        Initialize repository manager.

        Args:
            config: Application configuration
            workspace: Directory the checkout lives in (defaults to config)
        """
        self.config = config or get_config()
        self.workspace = Path(workspace or self.config.repository.workspace)

    def local_path_for(self, repo_url: str) -> Path:
        return self.workspace / parse_repository_name(repo_url)

    def sync_repository(self, repo_url: str, branch: str, access_token: Optional[str] = None) -> Repository:
        """
        Clone the repository, or pull the latest changes if it is already present.

        Args:
            repo_url: Repository clone URL
            branch: Branch to clone or pull
            access_token: Token used for HTTPS authentication

        Returns:
            Repository describing the local checkout

        Raises:
            RepositoryError: If git fails or the directory is not a repository
        """
        local_path = self.local_path_for(repo_url)
        repository = Repository(
            url=repo_url,
            name=local_path.name,
            local_path=str(local_path),
            branch=branch,
        )

        if local_path.is_dir():
            logger.info("Repository exists, pulling latest changes...")
            self._pull(repository, access_token)
        else:
            logger.info("Cloning repository...")
            self._clone(repository, access_token)

        return repository

    def _clone(self, repository: Repository, access_token: Optional[str]) -> None:
        clone_url = build_authenticated_url(repository.url, access_token)
        logger.info(f"Running: git clone -b {repository.branch} {redact_url(clone_url, access_token)}")

        self.workspace.mkdir(parents=True, exist_ok=True)
        try:
            git_repo = Repo.clone_from(clone_url, repository.local_path, branch=repository.branch)
        except GitCommandError as e:
            raise RepositoryError(
                f"git clone failed: {redact_url(str(e), access_token)}",
                repository_url=repository.url,
                operation="clone",
                exit_code=_git_exit_code(e)
            )

        if clone_url != repository.url:
            # keep the token out of .git/config
            git_repo.remotes.origin.set_url(repository.url)

        repository.sync_action = "cloned"
        repository.commit_sha = git_repo.head.commit.hexsha
        logger.info(f"Cloned {repository.name} at {repository.commit_sha[:8]}")

    def _pull(self, repository: Repository, access_token: Optional[str]) -> None:
        try:
            git_repo = Repo(repository.local_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryError(
                f"{repository.local_path} exists but is not a git repository",
                repository_url=repository.url,
                operation="pull",
                cause=e
            )

        pull_url = build_authenticated_url(repository.url, access_token)
        old_commit = git_repo.head.commit.hexsha
        try:
            if pull_url != repository.url:
                output = git_repo.git.pull(pull_url, repository.branch)
            else:
                output = git_repo.git.pull("origin", repository.branch)
        except GitCommandError as e:
            raise RepositoryError(
                f"git pull failed: {redact_url(str(e), access_token)}",
                repository_url=repository.url,
                operation="pull",
                exit_code=_git_exit_code(e)
            )

        if output:
            logger.debug(redact_url(output, access_token))

        repository.sync_action = "pulled"
        repository.commit_sha = git_repo.head.commit.hexsha
        if old_commit != repository.commit_sha:
            logger.info(f"Updated {repository.name}: {old_commit[:8]} -> {repository.commit_sha[:8]}")
        else:
            logger.info(f"Repository {repository.name} is already up to date")

    def find_compose_file(self, repo_path: Union[str, Path]) -> Optional[Path]:
        repo_path = Path(repo_path)
        for filename in self.config.repository.compose_files:
            candidate = repo_path / filename
            if candidate.is_file():
                return candidate
        return None

    def detect_strategy(self, repository: Repository) -> DeploymentStrategy:
        """
        Choose the deployment strategy from the manifests in the checkout root.

        A ``Dockerfile`` selects a single-container deployment and takes
        precedence over a compose file.

        Raises:
            ManifestNotFoundError: If neither manifest exists
        """
        repo_path = repository.local_path_obj

        if (repo_path / DOCKERFILE).is_file():
            strategy = DeploymentStrategy.SINGLE_CONTAINER
        elif self.find_compose_file(repo_path) is not None:
            strategy = DeploymentStrategy.COMPOSE
        else:
            logger.error("No Dockerfile or docker-compose.yml found! Exiting.")
            raise ManifestNotFoundError(
                "No Dockerfile or docker-compose.yml found",
                search_path=str(repo_path)
            )

        repository.strategy = strategy
        logger.info(f"Deployment strategy: {strategy.value}")
        return strategy

    def requirements_placeholder(self, repository: Repository) -> Optional[str]:
        """
        Placeholder dependency list for a checkout that has none.

        Nothing is written to the checkout, so later pulls never collide with
        an untracked file. The caller installs the content next to the
        uploaded source.

        Returns:
            Placeholder file content, or None if the checkout has its own file
        """
        requirements = repository.local_path_obj / self.config.repository.requirements_file
        if requirements.exists():
            return None

        logger.info(f"No {requirements.name} found, creating a default one...")
        return PLACEHOLDER_REQUIREMENTS

    def list_upload_files(self, repository: Repository) -> List[Path]:
        """List files to transfer to the remote host, relative to the checkout root."""
        root = repository.local_path_obj
        return sorted(
            path.relative_to(root) for path in root.rglob("*")
            if path.is_file() and ".git" not in path.relative_to(root).parts
        )
