"""
Remote host operations over SSH.
"""

from .ssh_client import SSHClient, CONNECTIVITY_PROBE
from .provisioner import RemoteProvisioner
from .container_deployer import ContainerDeployer, image_name, container_name
from .proxy import ProxyConfigurator, render_site_config
from .validator import DeploymentValidator

__all__ = [
    "SSHClient",
    "CONNECTIVITY_PROBE",
    "RemoteProvisioner",
    "ContainerDeployer",
    "image_name",
    "container_name",
    "ProxyConfigurator",
    "render_site_config",
    "DeploymentValidator"
]
