"""
Data models for the remote deployer.
"""

from .deployment import (
    DeploymentParameters, DeploymentStrategy, parse_repository_name, resolve_branch
)
from .repository import Repository
from .results import CommandResult, CheckResult, ValidationReport, DeploymentResult

__all__ = [
    "DeploymentParameters",
    "DeploymentStrategy",
    "parse_repository_name",
    "resolve_branch",
    "Repository",
    "CommandResult",
    "CheckResult",
    "ValidationReport",
    "DeploymentResult"
]
