"""
Installs Docker, Docker Compose and Nginx on the remote host.
"""

import logging
import shlex
from typing import Optional

from ..config import AppConfig, get_config
from ..models import CommandResult
from .ssh_client import SSHClient

logger = logging.getLogger(__name__)


PROVISION_SCRIPT = """\
set -e

echo "[INFO] Checking and Installing Docker..."

# drop a possibly broken docker source before apt update
sudo rm -f /etc/apt/sources.list.d/docker.list

sudo apt update -y
sudo apt install -y ca-certificates curl gnupg lsb-release

sudo install -m 0755 -d /etc/apt/keyrings
curl -fsSL {gpg_url} | sudo gpg --batch --yes --dearmor -o /etc/apt/keyrings/docker.gpg

echo \\
  "deb [arch=$(dpkg --print-architecture) signed-by=/etc/apt/keyrings/docker.gpg] \\
  {apt_url} $(. /etc/os-release && echo $VERSION_CODENAME) stable" \\
  | sudo tee /etc/apt/sources.list.d/docker.list > /dev/null

sudo apt update -y
sudo apt install -y docker-ce docker-ce-cli containerd.io docker-buildx-plugin docker-compose-plugin

sudo systemctl enable docker
sudo systemctl start docker

docker --version && echo "[INFO] Docker installed successfully."

sudo usermod -aG docker {user} || echo "[WARNING] Could not add {user} to docker group"

if ! command -v docker-compose >/dev/null 2>&1; then
  echo "[INFO] Installing Docker Compose..."
  sudo apt install -y docker-compose
else
  echo "[INFO] Docker Compose already installed."
fi

if ! command -v nginx >/dev/null 2>&1; then
  echo "[INFO] Installing Nginx..."
  sudo apt install -y nginx
else
  echo "[INFO] Nginx already installed."
fi

sudo systemctl enable nginx
sudo systemctl start nginx
"""


class RemoteProvisioner:
    """Runs the fixed package installation script on an apt-based host."""

    def __init__(self, ssh: SSHClient, config: Optional[AppConfig] = None):
        self.ssh = ssh
        self.config = config or get_config()

    def render_script(self, remote_user: str) -> str:
        provisioning = self.config.provisioning
        return PROVISION_SCRIPT.format(
            gpg_url=provisioning.docker_gpg_url,
            apt_url=provisioning.docker_apt_url,
            user=shlex.quote(remote_user),
        )

    def provision(self, remote_user: str) -> CommandResult:
        """
        Install and start Docker, Docker Compose and Nginx.

        Raises:
            CommandExecutionError: If any step of the script fails
        """
        logger.info("Preparing remote environment...")
        result = self.ssh.run_script(self.render_script(remote_user))
        logger.info("Remote environment ready")
        return result
