"""
Builds and starts the application containers on the remote host.
"""

import logging
import shlex
from typing import Optional

from ..config import AppConfig, get_config
from ..models import CommandResult, DeploymentParameters, DeploymentStrategy
from .ssh_client import SSHClient

logger = logging.getLogger(__name__)


def image_name(repo_name: str) -> str:
    return f"{repo_name.lower()}_image"


def container_name(repo_name: str) -> str:
    return f"{repo_name.lower()}_container"


class ContainerDeployer:
    """
    Starts the application with either ``docker-compose`` or a single
    ``docker build`` / ``docker run`` pair, replacing any previous instance.
    """

    def __init__(self, ssh: SSHClient, config: Optional[AppConfig] = None):
        self.ssh = ssh
        self.config = config or get_config()

    def compose_command(self, params: DeploymentParameters) -> str:
        app_dir = shlex.quote(params.remote_app_dir)
        return (
            f"cd {app_dir} && "
            "(sudo docker-compose down || true) && "
            "sudo docker-compose up -d --build"
        )

    def single_container_command(self, params: DeploymentParameters) -> str:
        app_dir = shlex.quote(params.remote_app_dir)
        image = shlex.quote(image_name(params.repo_name))
        container = shlex.quote(container_name(params.repo_name))
        port = int(params.app_port)
        restart = shlex.quote(self.config.application.restart_policy)
        return (
            f"cd {app_dir} && "
            f"sudo docker build -t {image} . && "
            f"(sudo docker rm -f {container} || true) && "
            f"sudo docker run -d --restart {restart} -p {port}:{port} --name {container} {image}"
        )

    def build_command(self, params: DeploymentParameters, strategy: DeploymentStrategy) -> str:
        if strategy.has_compose:
            return self.compose_command(params)
        return self.single_container_command(params)

    def deploy(self, params: DeploymentParameters, strategy: DeploymentStrategy) -> CommandResult:
        """
        Run the deployment command for ``strategy`` in the remote app directory.

        Raises:
            CommandExecutionError: If the build or start fails
        """
        logger.info("Deploying app on remote server...")
        result = self.ssh.run(self.build_command(params, strategy), output_level=logging.INFO)
        logger.info(f"Application started ({strategy.value})")
        return result
