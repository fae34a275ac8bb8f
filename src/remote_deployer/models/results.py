"""
Result models for remote commands, validation checks and whole runs.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .deployment import DeploymentParameters, DeploymentStrategy
from .repository import Repository


@dataclass
class CommandResult:
    """Outcome of one remote command; ``output`` holds stdout and stderr combined."""
    command: str
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class CheckResult:
    """A single named validation check."""
    name: str
    passed: bool
    detail: str = ""


@dataclass
class ValidationReport:
    """Pass/fail results of the post-deployment checks."""
    checks: List[CheckResult] = field(default_factory=list)

    def add(self, name: str, passed: bool, detail: str = "") -> CheckResult:
        check = CheckResult(name=name, passed=passed, detail=detail)
        self.checks.append(check)
        return check

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def failed_checks(self) -> List[CheckResult]:
        return [check for check in self.checks if not check.passed]


@dataclass
class DeploymentResult:
    """Summary of a completed deployment run."""
    parameters: DeploymentParameters
    repository: Repository
    strategy: DeploymentStrategy
    validation: ValidationReport
    log_file: Optional[Path] = None
    proxy_config_path: Optional[str] = None

    @property
    def public_url(self) -> str:
        return self.parameters.public_url
