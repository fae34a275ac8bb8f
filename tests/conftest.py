import io
from typing import List, Optional

import pytest

from remote_deployer.config import ConfigManager, reset_config_manager
from remote_deployer.logging import close_logging
from remote_deployer.models import CommandResult, DeploymentParameters
from remote_deployer.error_handling import CommandExecutionError


_ENV_VARS = list(ConfigManager()._create_env_var_mapping())


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config_manager()
    yield
    close_logging()
    reset_config_manager()


@pytest.fixture
def params() -> DeploymentParameters:
    return DeploymentParameters(
        repo_url="https://github.com/acme/Shop-App.git",
        access_token="ghp_secret",
        branch="main",
        remote_user="ubuntu",
        remote_host="203.0.113.10",
        ssh_key_path="/keys/app.pem",
        app_port=3000,
    )


class FakeSSH:
    """Records commands instead of talking to a host."""

    def __init__(self, failures: Optional[dict] = None):
        self.commands: List[str] = []
        self.inputs: List[Optional[str]] = []
        self.uploads = []
        self.failures = failures or {}
        self.closed = False
        self.connectivity_checked = False

    def check_connectivity(self):
        self.connectivity_checked = True
        return CommandResult(command="echo Connected OK", exit_code=0, output="Connected OK")

    def run(self, command, check=True, input_data=None, output_level=None):
        self.commands.append(command)
        self.inputs.append(input_data)
        exit_code = 0
        for fragment, status in self.failures.items():
            if fragment in command:
                exit_code = status
        result = CommandResult(command=command, exit_code=exit_code)
        if check and exit_code:
            raise CommandExecutionError("failed", command=command, status=exit_code)
        return result

    def run_script(self, script, check=True, output_level=None):
        return self.run("bash -s", check=check, input_data=script)

    def write_file(self, remote_path, content, sudo=True):
        tee = "sudo tee" if sudo else "tee"
        return self.run(f"{tee} {remote_path} > /dev/null", input_data=content)

    def upload_directory(self, local_dir, remote_dir, files):
        files = list(files)
        self.uploads.append((str(local_dir), remote_dir, files))
        return len(files)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@pytest.fixture
def fake_ssh() -> FakeSSH:
    return FakeSSH()


class FakeChannel:
    def __init__(self, output: bytes = b"", exit_status: int = 0):
        self.output = output
        self.exit_status = exit_status
        self.command = None
        self.stdin = io.BytesIO()
        self.write_shut = False
        self.combined = False

    def set_combine_stderr(self, flag):
        self.combined = flag

    def exec_command(self, command):
        self.command = command

    def makefile_stdin(self, mode):
        return self.stdin

    def shutdown_write(self):
        self.write_shut = True

    def makefile(self, mode):
        return io.BytesIO(self.output)

    def recv_exit_status(self):
        return self.exit_status

    def close(self):
        pass


class FakeTransport:
    def __init__(self, channels):
        self.channels = list(channels)
        self.opened = []

    def is_active(self):
        return True

    def open_session(self):
        channel = self.channels.pop(0)
        self.opened.append(channel)
        return channel


class FakeParamikoClient:
    def __init__(self, channels=(), connect_error: Optional[Exception] = None):
        self.transport = FakeTransport(channels)
        self.connect_error = connect_error
        self.connect_kwargs = None
        self.policy = None
        self.closed = False

    def set_missing_host_key_policy(self, policy):
        self.policy = policy

    def connect(self, **kwargs):
        self.connect_kwargs = kwargs
        if self.connect_error is not None:
            raise self.connect_error

    def get_transport(self):
        return self.transport

    def close(self):
        self.closed = True
