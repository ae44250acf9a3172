"""Paramiko implementation of the remote shell client."""

from __future__ import annotations

import paramiko
import structlog

from bluegreen.config import SshTargetSettings
from bluegreen.domain.ports.services import RemoteShellClient
from bluegreen.infrastructure.observability.metrics import SHELL_COMMANDS_TOTAL


logger = structlog.get_logger(__name__)


class ParamikoShellClient(RemoteShellClient):
    """Runs commands on the ssh target, one blocking call at a time.

    The session is opened on the first command and reused until close().
    """

    def __init__(self, target: SshTargetSettings) -> None:
        self._target = target
        self._client: paramiko.SSHClient | None = None

    @property
    def target(self) -> SshTargetSettings:
        return self._target

    def _connect(self) -> paramiko.SSHClient:
        if self._client is not None:
            return self._client
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        client.connect(
            self._target.hostname,
            port=self._target.port,
            username=self._target.username,
            password=self._target.password or None,
            key_filename=self._target.key_filename or None,
            timeout=self._target.connect_timeout_seconds,
        )
        logger.info(
            "ssh_connected",
            hostname=self._target.hostname,
            username=self._target.username,
        )
        self._client = client
        return client

    def exec_command(self, command: str) -> str:
        """Returns stdout followed by stderr, since either may carry the status line."""
        client = self._connect()
        logger.debug("ssh_exec_command", hostname=self._target.hostname, command=command)
        _stdin, stdout, stderr = client.exec_command(command)
        output = stdout.read().decode("utf-8", errors="replace")
        error = stderr.read().decode("utf-8", errors="replace")
        exit_status = stdout.channel.recv_exit_status()
        SHELL_COMMANDS_TOTAL.labels(exit_status=str(exit_status)).inc()
        if exit_status != 0:
            logger.warning(
                "ssh_command_nonzero_exit",
                hostname=self._target.hostname,
                exit_status=exit_status,
            )
        if error:
            return f"{output}\n{error}" if output else error
        return output

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("ssh_closed", hostname=self._target.hostname)
