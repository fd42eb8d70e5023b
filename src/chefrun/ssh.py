"""SSH client for executing commands on converge targets."""
import paramiko
from pathlib import Path
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class SSHClient:
    """Thin paramiko wrapper: one connection, blocking commands, SFTP uploads."""

    def __init__(
        self,
        host: str,
        port: int = 22,
        username: str = "root",
        private_key_path: Optional[str] = None,
        password: Optional[str] = None,
        connect_timeout: int = 10,
        command_timeout: int = 3600,
    ):
        """
        Initialize SSH client connection parameters.

        Args:
            host: SSH host/IP address. Required.
            port: SSH port number. Default: 22.
            username: SSH username. Default: root.
            private_key_path: Path to private SSH key file. Optional if using password or an agent.
            password: SSH password. Optional if using private key.
            connect_timeout: Seconds to wait for the TCP/SSH handshake.
            command_timeout: Seconds a single remote command may block on I/O.

        Raises:
            ValueError: If host, port, username or a timeout is invalid.
        """
        if not host or not isinstance(host, str):
            raise ValueError("host must be a non-empty string")
        if not isinstance(port, int) or port <= 0 or port > 65535:
            raise ValueError("port must be an integer between 1 and 65535")
        if not username or not isinstance(username, str):
            raise ValueError("username must be a non-empty string")
        if connect_timeout <= 0 or command_timeout <= 0:
            raise ValueError("timeouts must be positive")

        self.host = host
        self.port = port
        self.username = username
        self.private_key_path = private_key_path
        self.password = password
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.client: Optional[paramiko.SSHClient] = None

    def __enter__(self) -> "SSHClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    @property
    def connected(self) -> bool:
        if self.client is None:
            return False
        transport = self.client.get_transport()
        return transport is not None and transport.is_active()

    def connect(self) -> None:
        """
        Establish SSH connection to remote host.

        Raises:
            FileNotFoundError: If private key file does not exist.
            paramiko.AuthenticationException: If authentication fails.
            paramiko.SSHException: If SSH connection fails.
        """
        if self.connected:
            logger.debug(f"Already connected to {self.host}")
            return

        key_filename = None
        if self.private_key_path:
            key_path = Path(self.private_key_path).expanduser()
            if not key_path.exists():
                raise FileNotFoundError(f"Private key file not found: {self.private_key_path}")
            key_filename = str(key_path)

        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            self.client.connect(
                hostname=self.host,
                port=self.port,
                username=self.username,
                key_filename=key_filename,
                password=self.password,
                timeout=self.connect_timeout,
                allow_agent=True,
                look_for_keys=key_filename is None,
            )
            logger.info(f"SSH connection established to {self.username}@{self.host}:{self.port}")
        except Exception:
            self.client = None
            raise

    def disconnect(self) -> None:
        """Close SSH connection."""
        if self.client:
            self.client.close()
            self.client = None
            logger.info(f"SSH connection closed to {self.host}")

    def execute(self, command: str) -> Tuple[int, str, str]:
        """
        Execute a command on the remote host.

        Args:
            command: Shell command to execute. Required.

        Returns:
            Tuple of (exit_code, stdout, stderr).

        Raises:
            ValueError: If command is empty.
            RuntimeError: If not connected or the channel fails. A non-zero
                exit code is returned, not raised.
        """
        if not command or not isinstance(command, str):
            raise ValueError("command must be a non-empty string")

        if not self.connected:
            raise RuntimeError("Not connected to remote host. Call connect() first.")

        try:
            stdin, stdout, stderr = self.client.exec_command(command, timeout=self.command_timeout)
            stdin.close()
            stdout_text = stdout.read().decode("utf-8", errors="replace")
            stderr_text = stderr.read().decode("utf-8", errors="replace")
            exit_code = stdout.channel.recv_exit_status()

            logger.debug(f"Command executed: {command} (exit code: {exit_code})")
            return exit_code, stdout_text, stderr_text
        except Exception as e:
            logger.error(f"Command execution failed: {e}")
            raise RuntimeError(f"Command execution failed: {e}") from e

    def upload_file(self, local_path: str, remote_path: str) -> None:
        """
        Upload a local file to the remote host.

        Args:
            local_path: Path to local file. Required.
            remote_path: Destination path on remote host. Required.

        Raises:
            FileNotFoundError: If local file does not exist.
            RuntimeError: If not connected or upload fails.
        """
        if not local_path or not isinstance(local_path, str):
            raise ValueError("local_path must be a non-empty string")
        if not remote_path or not isinstance(remote_path, str):
            raise ValueError("remote_path must be a non-empty string")

        local_file = Path(local_path)
        if not local_file.exists():
            raise FileNotFoundError(f"Local file not found: {local_path}")

        if not self.connected:
            raise RuntimeError("Not connected to remote host. Call connect() first.")

        try:
            sftp = self.client.open_sftp()
            try:
                sftp.put(str(local_file), remote_path)
            finally:
                sftp.close()
            logger.info(f"File uploaded: {local_path} -> {self.host}:{remote_path}")
        except Exception as e:
            logger.error(f"File upload failed: {e}")
            raise RuntimeError(f"File upload failed: {e}") from e
