"""
Post-deployment health checks.
"""

import logging
from typing import Optional

import requests

from ..config import AppConfig, get_config
from ..models import DeploymentParameters, ValidationReport
from .ssh_client import SSHClient

logger = logging.getLogger(__name__)


REMOTE_CHECKS = (
    ("docker_service", "sudo systemctl is-active --quiet docker", "Docker running OK"),
    ("containers", "sudo docker ps", "Containers listed"),
    ("proxy_local", "curl -I http://127.0.0.1", "Proxy answered on 127.0.0.1"),
)


class DeploymentValidator:
    """
    Runs the fixed status checks and reports each as passed or failed.

    A failing check is reported, never raised; validation does not change the
    outcome of the run.
    """

    def __init__(
        self,
        ssh: SSHClient,
        config: Optional[AppConfig] = None,
        session: Optional[requests.Session] = None
    ):
        self.ssh = ssh
        self.config = config or get_config()
        self.session = session or requests.Session()

    def validate(self, params: DeploymentParameters, public_check: Optional[bool] = None) -> ValidationReport:
        logger.info("Validating deployment...")
        report = ValidationReport()

        for name, command, success_message in REMOTE_CHECKS:
            result = self.ssh.run(command, check=False, output_level=logging.INFO)
            if result.ok:
                logger.info(success_message)
                report.add(name, True, success_message)
            else:
                logger.warning(f"Check {name} failed (exit {result.exit_code})")
                report.add(name, False, f"exit status {result.exit_code}")

        if public_check is None:
            public_check = self.config.validation.http_check
        if public_check:
            self._check_public_url(params.public_url, report)

        return report

    def _check_public_url(self, url: str, report: ValidationReport) -> None:
        try:
            response = self.session.get(url, timeout=self.config.validation.http_timeout)
        except requests.RequestException as e:
            logger.warning(f"App check failed! {url} unreachable: {e}")
            report.add("proxy_public", False, str(e))
            return

        if response.status_code < 500:
            logger.info(f"{url} answered with HTTP {response.status_code}")
            report.add("proxy_public", True, f"HTTP {response.status_code}")
        else:
            logger.warning(f"App check failed! {url} answered with HTTP {response.status_code}")
            report.add("proxy_public", False, f"HTTP {response.status_code}")
