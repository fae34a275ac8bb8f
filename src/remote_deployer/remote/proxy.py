"""
Nginx reverse proxy site configuration.
"""

import logging
import posixpath
import shlex
from string import Template
from typing import Optional

from ..config import AppConfig, get_config
from ..error_handling import CommandExecutionError, ProxyConfigurationError
from .ssh_client import SSHClient

logger = logging.getLogger(__name__)


NGINX_SITE_TEMPLATE = Template("""\
server {
    listen ${listen_port};
    server_name ${server_name};

    location / {
        proxy_pass http://127.0.0.1:${app_port};
        proxy_set_header Host $$host;
        proxy_set_header X-Real-IP $$remote_addr;
        proxy_set_header X-Forwarded-For $$proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $$scheme;
    }
}
""")


def render_site_config(app_port: int, listen_port: int = 80, server_name: str = "_") -> str:
    """Render the Nginx server block forwarding to ``127.0.0.1:<app_port>``."""
    return NGINX_SITE_TEMPLATE.substitute(
        app_port=int(app_port),
        listen_port=int(listen_port),
        server_name=server_name,
    )


class ProxyConfigurator:
    """Writes, enables and reloads the Nginx site for the application."""

    def __init__(self, ssh: SSHClient, config: Optional[AppConfig] = None):
        self.ssh = ssh
        self.config = config or get_config()

    def site_paths(self, site_name: str):
        proxy = self.config.proxy
        return (
            posixpath.join(proxy.sites_available, site_name),
            posixpath.join(proxy.sites_enabled, site_name),
        )

    def configure(self, site_name: str, app_port: int) -> str:
        """
        Install the site config, link it into sites-enabled and restart Nginx.

        Returns:
            Remote path of the written site config

        Raises:
            ProxyConfigurationError: If writing, testing or restarting fails
        """
        logger.info("Configuring Nginx reverse proxy...")
        conf_path, link_path = self.site_paths(site_name)
        content = render_site_config(
            app_port,
            listen_port=self.config.proxy.listen_port,
            server_name=self.config.proxy.server_name,
        )

        try:
            self.ssh.write_file(conf_path, content)
            self.ssh.run(f"sudo ln -sf {shlex.quote(conf_path)} {shlex.quote(link_path)}")
            self.ssh.run("sudo nginx -t && sudo systemctl restart nginx", output_level=logging.INFO)
        except CommandExecutionError as e:
            raise ProxyConfigurationError(
                f"Nginx configuration failed: {e.message}",
                command=e.command,
                status=e.status,
                output=e.output,
                cause=e
            )

        logger.info(f"Nginx now proxies port {self.config.proxy.listen_port} to 127.0.0.1:{app_port}")
        return conf_path
