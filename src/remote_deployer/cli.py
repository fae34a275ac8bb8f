"""
Command-line interface for the remote deployer.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from . import __version__
from .config import AppConfig, get_config_manager, validate_port
from .error_handling import DeployerError, EXIT_FAILURE
from .logging import LoggerConfig, build_log_path, close_logging, register_secret, setup_logging
from .models import DeploymentResult
from .orchestrator import DeploymentOrchestrator
from .prompts import collect_parameters
from .remote import SSHClient, render_site_config


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config', '-c',
    type=click.Path(exists=True, path_type=Path),
    help='Path to YAML configuration file'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Increase console verbosity (-v shows remote command output)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int) -> None:
    """
    Remote Deployer - deploy a Dockerized repository to a single host over SSH.

    Clones or updates the repository, installs Docker and Nginx on the
    remote host, starts the application and puts Nginx in front of it.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose


def _load_config(ctx: click.Context) -> AppConfig:
    config = get_config_manager(ctx.obj.get('config_file')).get_config()
    if ctx.obj.get('verbose', 0) > 0:
        config.logging.level = "DEBUG"
    return config


def _logger_config(config: AppConfig, with_file: bool) -> LoggerConfig:
    return LoggerConfig(
        level=config.logging.level,
        file_path=str(build_log_path(config.logging.directory)) if with_file else None,
        format_string=config.logging.format,
        date_format=config.logging.date_format,
        enable_file=with_file,
        enable_structured=config.logging.structured,
    )


@cli.command()
@click.option('--repo-url', help='Repository clone URL')
@click.option('--token', help='Access token for HTTPS clones (or set GITHUB_TOKEN)')
@click.option('--branch', '-b', help='Branch to deploy (default: main)')
@click.option('--user', '-u', 'remote_user', help='Remote SSH user')
@click.option('--host', '-H', 'remote_host', help='Remote host name or IP address')
@click.option('--key', '-k', 'ssh_key_path', help='Path to SSH private key')
@click.option('--port', '-p', 'app_port', type=int, help='Application port')
@click.option(
    '--workspace',
    type=click.Path(file_okay=False, path_type=Path),
    help='Directory the repository is cloned into (default: current directory)'
)
@click.option(
    '--skip-provision',
    is_flag=True,
    default=False,
    help='Do not install Docker, Docker Compose and Nginx'
)
@click.option(
    '--public-check/--no-public-check',
    default=None,
    help='Probe http://<host> from this machine after deploying'
)
@click.pass_context
def deploy(
    ctx: click.Context,
    repo_url: Optional[str],
    token: Optional[str],
    branch: Optional[str],
    remote_user: Optional[str],
    remote_host: Optional[str],
    ssh_key_path: Optional[str],
    app_port: Optional[int],
    workspace: Optional[Path],
    skip_provision: bool,
    public_check: Optional[bool]
) -> None:
    """
    Deploy the application to the remote host.

    Any parameter not given as an option, environment variable or
    configuration value is prompted for.

    Examples:

        # Fully interactive
        remote-deployer deploy

        # Non-interactive
        remote-deployer deploy --repo-url https://github.com/user/app.git \\
            -u ubuntu -H 203.0.113.10 -k ~/.ssh/app.pem -p 3000
    """
    exit_code = 0
    try:
        config = _load_config(ctx)
        if workspace is not None:
            config.repository.workspace = str(workspace)

        log_file = setup_logging(_logger_config(config, with_file=True))

        params = collect_parameters(config, {
            "repo_url": repo_url,
            "access_token": token,
            "branch": branch,
            "remote_user": remote_user,
            "remote_host": remote_host,
            "ssh_key_path": ssh_key_path,
            "app_port": app_port,
        })
        register_secret(params.access_token)

        orchestrator = DeploymentOrchestrator(
            params,
            config,
            skip_provision=skip_provision,
            public_check=public_check,
            log_file=log_file,
        )
        result = orchestrator.run()
        display_results(result, ctx.obj.get('verbose', 0))

    except DeployerError as e:
        click.echo(f"Error: {e}", err=True)
        exit_code = e.exit_code
    finally:
        close_logging()

    sys.exit(exit_code)


@cli.command()
@click.option('--user', '-u', 'remote_user', help='Remote SSH user')
@click.option('--host', '-H', 'remote_host', help='Remote host name or IP address')
@click.option('--key', '-k', 'ssh_key_path', help='Path to SSH private key')
@click.pass_context
def check(
    ctx: click.Context,
    remote_user: Optional[str],
    remote_host: Optional[str],
    ssh_key_path: Optional[str]
) -> None:
    """
    Test SSH connectivity to the remote host.

    Exits with status 20 when the host cannot be reached.
    """
    exit_code = 0
    try:
        config = _load_config(ctx)
        setup_logging(_logger_config(config, with_file=False))

        remote_user = remote_user or config.remote.user or click.prompt("Enter your remote server username")
        remote_host = remote_host or config.remote.host or click.prompt("Enter your remote server IP address")
        ssh_key_path = ssh_key_path or config.remote.key_path or click.prompt("Enter full path to your SSH key")

        with SSHClient(
            host=remote_host,
            user=remote_user,
            key_path=ssh_key_path,
            port=config.remote.port,
            connect_timeout=config.remote.connect_timeout,
        ) as ssh:
            ssh.check_connectivity()
        click.echo(f"✅ SSH connection to {remote_user}@{remote_host} successful")

    except DeployerError as e:
        click.echo(f"❌ {e}", err=True)
        exit_code = e.exit_code
    finally:
        close_logging()

    sys.exit(exit_code)


@cli.command()
@click.option(
    '--format', '-f',
    type=click.Choice(['table', 'json', 'yaml'], case_sensitive=False),
    default='table',
    help='Output format for configuration display'
)
@click.option(
    '--save',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Also write the effective configuration to this YAML file (without the access token)'
)
@click.pass_context
def config(ctx: click.Context, format: str, save: Optional[Path]) -> None:
    """
    Display current configuration settings.

    Shows defaults merged with the configuration file and environment
    variables. Secrets are masked, and are left out of a saved file.
    """
    try:
        config_dict = masked_config(_load_config(ctx))
        if save is not None:
            get_config_manager(ctx.obj.get('config_file')).save_config(save)
    except DeployerError as e:
        click.echo(f"Error displaying configuration: {e}", err=True)
        sys.exit(e.exit_code)

    if format == 'json':
        click.echo(json.dumps(config_dict, indent=2, default=str))
    elif format == 'yaml':
        click.echo(yaml.dump(config_dict, default_flow_style=False))
    else:
        display_config_table(config_dict)


@cli.command('render-proxy')
@click.option('--name', '-n', default='app', show_default=True, help='Site name')
@click.option('--port', '-p', 'app_port', type=int, required=True, help='Application port')
@click.pass_context
def render_proxy(ctx: click.Context, name: str, app_port: int) -> None:
    """Print the Nginx site configuration that a deployment would install."""
    try:
        config = _load_config(ctx)
        port = validate_port(app_port, "application port")
    except DeployerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)

    click.echo(f"# {config.proxy.sites_available.rstrip('/')}/{name}")
    click.echo(render_site_config(
        port,
        listen_port=config.proxy.listen_port,
        server_name=config.proxy.server_name,
    ), nl=False)


def masked_config(config: AppConfig) -> dict:
    """Configuration as a dictionary with the access token hidden."""
    config_dict = config.to_dict()
    if config_dict['repository'].get('access_token'):
        config_dict['repository']['access_token'] = '*' * 8
    return config_dict


def display_results(result: DeploymentResult, verbose: int) -> None:
    """Display deployment results."""
    click.echo("\n" + "=" * 60)
    click.echo("DEPLOYMENT RESULTS")
    click.echo("=" * 60)

    repository = result.repository
    click.echo(f"Repository: {repository.name} ({repository.branch}, {repository.sync_action})")
    if repository.commit_sha:
        click.echo(f"Commit: {repository.commit_sha[:12]}")
    click.echo(f"Strategy: {result.strategy.value}")
    click.echo(f"Target: {result.parameters.remote_target}:{result.parameters.remote_app_dir}")
    if result.proxy_config_path:
        click.echo(f"Nginx site: {result.proxy_config_path}")

    click.echo("\nValidation:")
    for check in result.validation.checks:
        mark = "✅" if check.passed else "❌"
        line = f"  {mark} {check.name}"
        if verbose > 0 and check.detail:
            line += f" - {check.detail}"
        click.echo(line)

    if not result.validation.passed:
        failed = result.validation.failed_checks
        click.echo(f"  {len(failed)} of {len(result.validation.checks)} checks failed")

    if result.log_file:
        click.echo(f"\nLog file: {result.log_file}")
    click.echo(f"Visit: {result.public_url}")
    click.echo("=" * 60)


def display_config_table(config_dict: dict) -> None:
    """Display configuration in table format."""
    click.echo("\nCurrent Configuration:")
    click.echo("-" * 50)

    for section_name, section in config_dict.items():
        click.echo(f"\n[{section_name}]")
        for key, value in section.items():
            click.echo(f"  {key}: {value}")


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nAborted.", err=True)
        sys.exit(EXIT_FAILURE)


if __name__ == '__main__':
    main()
