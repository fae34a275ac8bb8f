"""
SSH session wrapper used for every remote operation.
"""

import logging
import os
import posixpath
import shlex
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import paramiko

from ..error_handling import CommandExecutionError, ConfigurationError, RemoteConnectionError
from ..models import CommandResult

logger = logging.getLogger(__name__)


CONNECTIVITY_PROBE = "echo Connected OK"


class SSHClient:
    """
    Authenticated command channel to the target host.

    Host keys of unknown hosts are accepted automatically. Commands are run
    one at a time with stdout and stderr merged into a single stream, which
    is logged line by line as it arrives.
    """

    def __init__(
        self,
        host: str,
        user: str,
        key_path: str,
        port: int = 22,
        connect_timeout: int = 15,
        client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient
    ):
        """
        Initialize SSH client.

        Args:
            host: Remote host name or IP address
            user: Remote user name
            key_path: Path to the private key file
            port: SSH port
            connect_timeout: TCP connect timeout in seconds
            client_factory: Factory for the underlying paramiko client
        """
        self.host = host
        self.user = user
        self.key_path = key_path
        self.port = port
        self.connect_timeout = connect_timeout
        self._client_factory = client_factory
        self._client: Optional[paramiko.SSHClient] = None

    @property
    def target(self) -> str:
        return f"{self.user}@{self.host}"

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        """
        Open the SSH session.

        Raises:
            RemoteConnectionError: If the host is unreachable or rejects the key
        """
        if self._client is not None:
            return

        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=self.host,
                port=self.port,
                username=self.user,
                key_filename=os.path.expanduser(self.key_path),
                timeout=self.connect_timeout,
                allow_agent=False,
                look_for_keys=False,
            )
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise RemoteConnectionError(
                f"SSH connection to {self.target} failed",
                host=self.host,
                user=self.user,
                cause=e
            )

        self._client = client
        logger.debug(f"SSH session to {self.target}:{self.port} established")

    def check_connectivity(self) -> CommandResult:
        """
        Connect and run the connectivity probe.

        Raises:
            RemoteConnectionError: If the session or the probe fails
        """
        logger.info(f"Checking SSH connectivity to {self.host}")
        try:
            self.connect()
            result = self.run(CONNECTIVITY_PROBE, output_level=logging.INFO)
        except (RemoteConnectionError, CommandExecutionError) as e:
            logger.error("SSH connection failed!")
            if isinstance(e, RemoteConnectionError):
                raise
            raise RemoteConnectionError(
                f"Connectivity probe failed on {self.target}",
                host=self.host,
                user=self.user,
                cause=e
            )
        return result

    def run(
        self,
        command: str,
        check: bool = True,
        input_data: Optional[str] = None,
        output_level: int = logging.DEBUG
    ) -> CommandResult:
        """
        Execute a command on the remote host and wait for it to finish.

        Args:
            command: Shell command line
            check: Raise on a non-zero exit status
            input_data: Text written to the command's stdin, followed by EOF
            output_level: Log level for each line of output

        Returns:
            CommandResult with the exit status and combined output

        Raises:
            CommandExecutionError: If ``check`` is set and the command fails
            RemoteConnectionError: If the session breaks while running
        """
        if self._client is None:
            self.connect()

        logger.debug(f"[{self.host}] $ {command}")
        transport = self._client.get_transport()
        if transport is None or not transport.is_active():
            raise RemoteConnectionError(
                f"SSH session to {self.target} is not active",
                host=self.host,
                user=self.user
            )

        lines = []
        try:
            channel = transport.open_session()
            channel.set_combine_stderr(True)
            channel.exec_command(command)

            if input_data is not None:
                stdin = channel.makefile_stdin('wb')
                stdin.write(input_data.encode('utf-8'))
                stdin.flush()
                channel.shutdown_write()

            for raw_line in channel.makefile('rb'):
                line = raw_line.decode('utf-8', errors='replace').rstrip('\r\n')
                lines.append(line)
                logger.log(output_level, line)

            exit_code = channel.recv_exit_status()
            channel.close()
        except (paramiko.SSHException, OSError) as e:
            raise RemoteConnectionError(
                f"SSH session to {self.target} failed while running a command",
                host=self.host,
                user=self.user,
                cause=e
            )

        result = CommandResult(command=command, exit_code=exit_code, output="\n".join(lines))

        if check and not result.ok:
            raise CommandExecutionError(
                f"Remote command exited with status {exit_code}",
                command=command,
                status=exit_code,
                output=result.output
            )
        return result

    def run_script(self, script: str, check: bool = True, output_level: int = logging.INFO) -> CommandResult:
        """Run a multi-line bash script by feeding it to ``bash -s``."""
        return self.run("bash -s", check=check, input_data=script, output_level=output_level)

    def write_file(self, remote_path: str, content: str, sudo: bool = True) -> CommandResult:
        """Write ``content`` to ``remote_path`` through ``tee``."""
        tee = "sudo tee" if sudo else "tee"
        return self.run(f"{tee} {shlex.quote(remote_path)} > /dev/null", input_data=content)

    def upload_directory(
        self,
        local_dir: Union[str, Path],
        remote_dir: str,
        files: Iterable[Path]
    ) -> int:
        """
        Replace the contents of ``remote_dir`` with files from ``local_dir`` over SFTP.

        The remote directory is removed first, so files deleted locally do
        not linger in the next build context.

        Args:
            local_dir: Local root directory
            remote_dir: Remote root directory, recreated from scratch
            files: Paths relative to ``local_dir``

        Returns:
            Number of files uploaded
        """
        if posixpath.normpath(remote_dir) in ("/", "."):
            raise ConfigurationError(
                f"Refusing to replace remote directory {remote_dir!r}",
                config_section="remote",
                config_key="base_dir"
            )

        if self._client is None:
            self.connect()

        local_dir = Path(local_dir)
        files = list(files)
        remote_dirs = {remote_dir}
        for relative in files:
            parent = relative.parent.as_posix()
            if parent != ".":
                remote_dirs.add(posixpath.join(remote_dir, parent))

        self.run(
            f"sudo rm -rf {shlex.quote(remote_dir)} && mkdir -p "
            + " ".join(shlex.quote(d) for d in sorted(remote_dirs))
        )

        try:
            sftp = self._client.open_sftp()
        except (paramiko.SSHException, OSError) as e:
            raise RemoteConnectionError(
                f"Could not open SFTP session to {self.target}",
                host=self.host,
                user=self.user,
                cause=e
            )

        try:
            for relative in files:
                local_file = local_dir / relative
                remote_file = posixpath.join(remote_dir, relative.as_posix())
                sftp.put(str(local_file), remote_file)
                sftp.chmod(remote_file, local_file.stat().st_mode & 0o777)
                logger.debug(f"Uploaded {relative.as_posix()}")
        except (paramiko.SSHException, OSError) as e:
            raise RemoteConnectionError(
                f"File transfer to {self.target}:{remote_dir} failed",
                host=self.host,
                user=self.user,
                cause=e
            )
        finally:
            sftp.close()

        logger.info(f"Uploaded {len(files)} files to {self.target}:{remote_dir}")
        return len(files)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
