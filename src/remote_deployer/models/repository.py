"""
Local checkout model for the repository being deployed.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .deployment import DeploymentStrategy


@dataclass
class Repository:
    """
    Represents the local checkout of the repository being deployed.

    ``sync_action`` records whether the checkout was freshly cloned or an
    existing directory was pulled.
    """

    url: str
    name: str
    local_path: str
    branch: str = "main"
    sync_action: str = "not_synced"  # not_synced, cloned, pulled
    commit_sha: Optional[str] = None
    strategy: Optional[DeploymentStrategy] = None

    @property
    def local_path_obj(self) -> Path:
        return Path(self.local_path)
