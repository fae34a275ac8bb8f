"""
Interactive collection of deployment parameters.
"""

from typing import Any, Callable, Dict, Optional

import click

from .config import AppConfig, validate_port
from .error_handling import ConfigurationError
from .models import DeploymentParameters, resolve_branch


PROMPTS = {
    "repo_url": "Enter your GitHub repo URL (e.g., https://github.com/username/repo.git)",
    "access_token": "Enter your GitHub Personal Access Token (PAT)",
    "branch": "Enter branch name (default: main)",
    "remote_user": "Enter your remote server username (e.g., ubuntu)",
    "remote_host": "Enter your remote server IP address",
    "ssh_key_path": "Enter full path to your SSH key (.pem)",
    "app_port": "Enter application port (e.g., 3000)",
}


def _config_defaults(config: AppConfig) -> Dict[str, Any]:
    return {
        "repo_url": config.repository.url,
        "access_token": config.repository.access_token,
        "branch": config.repository.branch,
        "remote_user": config.remote.user,
        "remote_host": config.remote.host,
        "ssh_key_path": config.remote.key_path,
        "app_port": config.application.port,
    }


def collect_parameters(
    config: AppConfig,
    overrides: Optional[Dict[str, Any]] = None,
    prompt: Callable[..., Any] = click.prompt
) -> DeploymentParameters:
    """
    Gather the deployment parameters, prompting for anything not supplied.

    Values given as CLI options win over configuration and environment values;
    whatever is still missing is asked for interactively. A blank branch
    becomes ``main``.

    Raises:
        ConfigurationError: If the port or repository URL is unusable
    """
    values = _config_defaults(config)
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    for key in PROMPTS:
        if values.get(key) is not None:
            continue
        if key == "access_token":
            values[key] = prompt(PROMPTS[key], default="", show_default=False, hide_input=True)
        elif key == "branch":
            values[key] = prompt(PROMPTS[key], default="", show_default=False)
        elif key == "app_port":
            values[key] = prompt(PROMPTS[key], type=int)
        else:
            values[key] = prompt(PROMPTS[key])

    port = validate_port(values["app_port"], "application port")

    try:
        return DeploymentParameters(
            repo_url=str(values["repo_url"]).strip(),
            access_token=values["access_token"] or None,
            branch=resolve_branch(values["branch"]),
            remote_user=str(values["remote_user"]).strip(),
            remote_host=str(values["remote_host"]).strip(),
            ssh_key_path=str(values["ssh_key_path"]).strip(),
            app_port=port,
            remote_base_dir=config.remote.base_dir,
        )
    except ValueError as e:
        raise ConfigurationError(str(e), config_key="repo_url", cause=e)
