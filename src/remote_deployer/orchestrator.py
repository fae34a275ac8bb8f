"""
Orchestration of a single deployment run.
"""

import logging
import posixpath
from pathlib import Path
from typing import Optional

from .config import AppConfig, get_config
from .models import DeploymentParameters, DeploymentResult, Repository
from .remote import (
    SSHClient, RemoteProvisioner, ContainerDeployer, ProxyConfigurator, DeploymentValidator
)
from .repository import RepositoryManager

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """
    Runs the deployment steps in a fixed order and stops at the first failure.

    The steps are: sync the repository, pick the deployment strategy, check
    for a requirements file, check SSH connectivity, provision the
    host, upload the source, start the containers, configure Nginx and
    validate. Errors propagate unchanged as ``DeployerError`` subclasses so
    the CLI can turn them into exit codes.
    """

    def __init__(
        self,
        params: DeploymentParameters,
        config: Optional[AppConfig] = None,
        repository_manager: Optional[RepositoryManager] = None,
        ssh_client: Optional[SSHClient] = None,
        skip_provision: bool = False,
        public_check: Optional[bool] = None,
        log_file: Optional[Path] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            params: Operator-supplied deployment parameters
            config: Application configuration
            repository_manager: Local repository manager
            ssh_client: SSH session to the target host
            skip_provision: Skip the package installation step
            public_check: Override for the public HTTP check
            log_file: Path of the run's log file, reported in the result
        """
        self.params = params
        self.config = config or get_config()
        self.repository_manager = repository_manager or RepositoryManager(self.config)
        self.ssh = ssh_client or SSHClient(
            host=params.remote_host,
            user=params.remote_user,
            key_path=params.ssh_key_path,
            port=self.config.remote.port,
            connect_timeout=self.config.remote.connect_timeout,
        )
        self.skip_provision = skip_provision or not self.config.provisioning.enabled
        self.public_check = public_check
        self.log_file = log_file

        self.provisioner = RemoteProvisioner(self.ssh, self.config)
        self.deployer = ContainerDeployer(self.ssh, self.config)
        self.proxy = ProxyConfigurator(self.ssh, self.config)
        self.validator = DeploymentValidator(self.ssh, self.config)

    def run(self) -> DeploymentResult:
        """Execute the whole deployment and return its summary."""
        params = self.params

        repository = self.repository_manager.sync_repository(
            params.repo_url, params.branch, params.access_token
        )
        strategy = self.repository_manager.detect_strategy(repository)
        requirements = self.repository_manager.requirements_placeholder(repository)

        with self.ssh:
            self.ssh.check_connectivity()

            if self.skip_provision:
                logger.info("Skipping remote provisioning")
            else:
                self.provisioner.provision(params.remote_user)

            self._upload(repository, requirements)
            self.deployer.deploy(params, strategy)
            proxy_config_path = self.proxy.configure(params.repo_name, params.app_port)
            report = self.validator.validate(params, public_check=self.public_check)

        logger.info(f"Deployment completed successfully! Visit: {params.public_url}")

        return DeploymentResult(
            parameters=params,
            repository=repository,
            strategy=strategy,
            validation=report,
            log_file=self.log_file,
            proxy_config_path=proxy_config_path,
        )

    def _upload(self, repository: Repository, requirements: Optional[str]) -> None:
        logger.info("Pushing repo to remote server...")
        files = self.repository_manager.list_upload_files(repository)
        self.ssh.upload_directory(repository.local_path, self.params.remote_app_dir, files)

        if requirements is not None:
            target = posixpath.join(self.params.remote_app_dir, self.config.repository.requirements_file)
            self.ssh.write_file(target, requirements, sudo=False)
