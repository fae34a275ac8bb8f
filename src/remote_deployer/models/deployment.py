"""
Deployment parameter and strategy models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import DEFAULT_BRANCH


class DeploymentStrategy(Enum):
    """How the application is started on the remote host."""
    SINGLE_CONTAINER = "single_container"
    COMPOSE = "compose"

    @property
    def has_compose(self) -> bool:
        return self is DeploymentStrategy.COMPOSE


def resolve_branch(branch: Optional[str]) -> str:
    """Return ``branch`` stripped, or the default branch when it is blank."""
    if branch is None:
        return DEFAULT_BRANCH
    branch = branch.strip()
    return branch or DEFAULT_BRANCH


def parse_repository_name(url: str) -> str:
    """
    Extract the repository name from a clone URL.

    Handles ``https://host/owner/repo(.git)``, trailing slashes and the SCP-like
    SSH form ``git@host:owner/repo.git``.

    Raises:
        ValueError: If no name can be derived from the URL
    """
    path = url.strip().rstrip('/')
    name = path.rsplit('/', 1)[-1]
    if ':' in name:
        name = name.rsplit(':', 1)[-1]

    if name.endswith('.git') and name != '.git':
        name = name[:-4]

    if not name or name in ('.', '..', '.git'):
        raise ValueError(f"Cannot determine repository name from URL: {url!r}")
    return name


@dataclass
class DeploymentParameters:
    """
    Operator-supplied values for a single deployment run.

    Captured once at startup and used unchanged for the rest of the run.
    """

    repo_url: str
    remote_user: str
    remote_host: str
    ssh_key_path: str
    app_port: int
    access_token: Optional[str] = None
    branch: str = DEFAULT_BRANCH
    remote_base_dir: Optional[str] = None

    def __post_init__(self):
        self.branch = resolve_branch(self.branch)
        # raises early on URLs without a usable name
        parse_repository_name(self.repo_url)

    @property
    def repo_name(self) -> str:
        return parse_repository_name(self.repo_url)

    @property
    def remote_target(self) -> str:
        return f"{self.remote_user}@{self.remote_host}"

    @property
    def remote_app_dir(self) -> str:
        base_dir = self.remote_base_dir or f"/home/{self.remote_user}"
        return f"{base_dir.rstrip('/')}/{self.repo_name}"

    @property
    def public_url(self) -> str:
        return f"http://{self.remote_host}"
