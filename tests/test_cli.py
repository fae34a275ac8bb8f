import json

from click.testing import CliRunner

from remote_deployer import cli
from remote_deployer.error_handling import RemoteConnectionError
from remote_deployer.models import Repository
from remote_deployer.remote import SSHClient
from remote_deployer.repository import RepositoryManager

from conftest import FakeSSH

DEPLOY_ARGS = [
    "deploy",
    "--repo-url", "https://github.com/acme/shop.git",
    "--token", "ghp_secret",
    "--user", "ubuntu",
    "--host", "203.0.113.10",
    "--key", "/keys/app.pem",
    "--port", "3000",
    "--no-public-check",
]


def _stub_sync(monkeypatch, tmp_path, *files):
    checkout = tmp_path / "shop"
    checkout.mkdir()
    for name in files:
        (checkout / name).write_text("")

    def fake_sync(self, repo_url, branch, access_token=None):
        return Repository(
            url=repo_url, name="shop", local_path=str(checkout),
            branch=branch, sync_action="cloned"
        )

    monkeypatch.setattr(RepositoryManager, "sync_repository", fake_sync)


def _refuse_connection(self):
    raise RemoteConnectionError("SSH connection failed", host=self.host, user=self.user)


def test_missing_manifest_exits_10(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _stub_sync(monkeypatch, tmp_path, "README.md")

    result = CliRunner().invoke(cli.cli, DEPLOY_ARGS + ["--branch", "main"])

    assert result.exit_code == 10
    assert "No Dockerfile or docker-compose.yml found" in result.output


def test_unreachable_host_exits_20(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _stub_sync(monkeypatch, tmp_path, "Dockerfile")
    monkeypatch.setattr(SSHClient, "connect", _refuse_connection)

    result = CliRunner().invoke(cli.cli, DEPLOY_ARGS + ["--branch", "main"])

    assert result.exit_code == 20
    assert "SSH connection failed!" in result.output


def test_successful_deploy_writes_log_and_masks_token(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _stub_sync(monkeypatch, tmp_path, "Dockerfile")
    fake_ssh = FakeSSH()
    monkeypatch.setattr(cli.DeploymentOrchestrator, "__init__", _wrap_init_with(fake_ssh))

    result = CliRunner().invoke(cli.cli, DEPLOY_ARGS, input="\n")

    assert result.exit_code == 0, result.output
    assert "Deployment completed successfully! Visit: http://203.0.113.10" in result.output
    assert "ghp_secret" not in result.output

    logs = list(tmp_path.glob("deploy_*.log"))
    assert len(logs) == 1
    log_text = logs[0].read_text()
    assert "Validating deployment..." in log_text
    assert "Deploying app on remote server..." in log_text
    assert any("sudo docker build -t shop_image ." in command for command in fake_ssh.commands)
    assert "ghp_secret" not in log_text


def test_blank_branch_prompt_deploys_main(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    seen = {}

    def fake_sync(self, repo_url, branch, access_token=None):
        seen["branch"] = branch
        raise RemoteConnectionError("stop here")

    monkeypatch.setattr(RepositoryManager, "sync_repository", fake_sync)

    result = CliRunner().invoke(cli.cli, DEPLOY_ARGS, input="\n")

    assert seen["branch"] == "main"
    assert result.exit_code == 20


def test_check_command_reports_unreachable_host(monkeypatch):
    monkeypatch.setattr(SSHClient, "connect", _refuse_connection)

    result = CliRunner().invoke(cli.cli, ["check", "-u", "ubuntu", "-H", "203.0.113.10", "-k", "/keys/app.pem"])

    assert result.exit_code == 20


def test_config_command_masks_token(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_secret")
    monkeypatch.setenv("DEPLOY_REMOTE_HOST", "203.0.113.10")

    result = CliRunner().invoke(cli.cli, ["config", "--format", "json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["repository"]["access_token"] == "********"
    assert data["remote"]["host"] == "203.0.113.10"


def test_config_command_saves_without_token(tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_secret")
    target = tmp_path / "saved.yaml"

    result = CliRunner().invoke(cli.cli, ["config", "--format", "yaml", "--save", str(target)])

    assert result.exit_code == 0
    assert "ghp_secret" not in target.read_text()
    assert "listen_port: 80" in target.read_text()


def test_render_proxy_prints_site_config():
    result = CliRunner().invoke(cli.cli, ["render-proxy", "--name", "shop", "--port", "8080"])

    assert result.exit_code == 0
    assert "# /etc/nginx/sites-available/shop" in result.output
    assert "proxy_pass http://127.0.0.1:8080;" in result.output


def test_render_proxy_rejects_invalid_port():
    result = CliRunner().invoke(cli.cli, ["render-proxy", "--port", "0"])

    assert result.exit_code == 2


def _wrap_init_with(fake_ssh):
    original_init = cli.DeploymentOrchestrator.__init__

    class FakeSession:
        def get(self, url, timeout=None):
            raise AssertionError("public check should be disabled")

    def init(self, params, config=None, **kwargs):
        original_init(self, params, config, ssh_client=fake_ssh, **kwargs)
        self.validator.session = FakeSession()

    return init
