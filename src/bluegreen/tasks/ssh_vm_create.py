"""Vm creation by a third-party system reachable over ssh."""

from __future__ import annotations

import re

import structlog

from bluegreen.config import SshTargetSettings, SshVmCreateSettings
from bluegreen.domain.models.environment import ApplicationVm, Environment
from bluegreen.domain.models.task import TaskStatus
from bluegreen.domain.ports.repositories import EnvironmentTx
from bluegreen.domain.ports.services import RemoteShellClient, Sleeper
from bluegreen.domain.services.output_matching import (
    find_required_capture,
    matches_any_line,
    OutputParseError,
    substitute_variables,
)
from bluegreen.domain.services.waiter import (
    ProgressChecker,
    RemoteOperationFailedError,
    WaiterParameters,
)
from bluegreen.tasks.base import Task


logger = structlog.get_logger(__name__)

HYPHEN_LINE = "-" * 70
CMDVAR_ENVNAME = "envName"
CMDVAR_HOSTNAME = "hostname"


class SshVmCreateProgressChecker(ProgressChecker[ApplicationVm]):
    """Knows how to check progress of vm creation initiated by an ssh command."""

    def __init__(
        self,
        initial_output: str,
        log_context: str,
        shell_client: RemoteShellClient,
        ssh_target: SshTargetSettings,
        config: SshVmCreateSettings,
    ) -> None:
        self._initial_output = initial_output
        self._log_context = log_context
        self._shell_client = shell_client
        self._ssh_target = ssh_target
        self._config = config
        self._initial_pattern_hostname = re.compile(config.initial_regexp_hostname)
        self._initial_pattern_ip_address = re.compile(config.initial_regexp_ipaddress)
        self._followup_pattern_done = re.compile(config.followup_regexp_done)
        self._followup_pattern_error = re.compile(config.followup_regexp_error)
        self._hostname: str | None = None
        self._ip_address: str | None = None
        self._done = False
        self._result: ApplicationVm | None = None

    @property
    def hostname(self) -> str | None:
        return self._hostname

    @property
    def ip_address(self) -> str | None:
        return self._ip_address

    def context(self) -> str:
        """Describes the ongoing operation once hostname/ip address are known."""
        return (
            f"{self._log_context}SSH VM Creation for hostname '{self._hostname}', "
            f"ipAddress {self._ip_address}: "
        )

    @property
    def description(self) -> str:
        return f"SSH VM Creation by {self._ssh_target.username}@{self._ssh_target.hostname}"

    def initial_check(self) -> None:
        """Identifies the new vm's hostname and ip address from the initial output.

        This doesn't tell us whether the vm is available yet.
        """
        if not self._initial_output or not self._initial_output.strip():
            raise OutputParseError(f"{self._log_context}Blank initial output from {self.description}")
        logger.debug(
            "vm_create_initial_output",
            operation=self.description,
            output=f"\n{HYPHEN_LINE}\n{self._initial_output}\n{HYPHEN_LINE}",
        )
        self._hostname = find_required_capture(
            "hostname", self._initial_output, self._initial_pattern_hostname, self._log_context
        )
        self._ip_address = find_required_capture(
            "ipAddress", self._initial_output, self._initial_pattern_ip_address, self._log_context
        )
        logger.info("vm_create_started", context=self.context())

    def followup_check(self, wait_num: int) -> None:
        """Runs the followup command; the error signature wins over the done signature."""
        command = substitute_variables(
            self._config.followup_command, {CMDVAR_HOSTNAME: self._hostname or ""}
        )
        followup_output = self._shell_client.exec_command(command)
        logger.debug("vm_create_state", wait_num=wait_num, output=followup_output)
        if matches_any_line(followup_output, self._followup_pattern_error):
            raise RemoteOperationFailedError(f"{self.context()}FAILED: {followup_output}")
        if matches_any_line(followup_output, self._followup_pattern_done):
            self._done = True
            self._result = ApplicationVm(hostname=self._hostname, ip_address=self._ip_address)

    def is_done(self) -> bool:
        return self._done

    @property
    def result(self) -> ApplicationVm | None:
        """A transient vm; whoever waited for it attaches it to an environment."""
        return self._result

    def timeout(self) -> ApplicationVm | None:
        logger.error("vm_create_timed_out", context=self.context())
        return None


class SshVmCreateTask(Task):
    """Runs a configurable command over ssh on a third-party host that knows how
    to create an application vm, then records the new vm in the environment.
    """

    def __init__(
        self,
        position: int,
        environment: Environment,
        shell_client: RemoteShellClient,
        ssh_target: SshTargetSettings,
        config: SshVmCreateSettings,
        environment_tx: EnvironmentTx,
        sleeper: Sleeper,
    ) -> None:
        super().__init__(position, environment)
        self._shell_client = shell_client
        self._ssh_target = ssh_target
        self._config = config
        self._environment_tx = environment_tx
        self._sleeper = sleeper

    @property
    def waiter_parameters(self) -> WaiterParameters:
        return WaiterParameters(
            max_num_waits=self._config.max_num_waits,
            wait_report_interval=self._config.wait_report_interval,
            wait_delay_milliseconds=self._config.wait_delay_milliseconds,
        )

    def process(self, noop: bool) -> TaskStatus:
        self._log.info(
            "vm_create_command_executing",
            target=f"{self._ssh_target.username}@{self._ssh_target.hostname}",
            noop=noop,
        )
        if noop:
            return TaskStatus.NOOP
        command = substitute_variables(
            self._config.initial_command, {CMDVAR_ENVNAME: self.environment.env_name}
        )
        output = self._shell_client.exec_command(command)
        application_vm = self._wait_til_vm_is_available(output)
        self._persist_model(application_vm)
        return TaskStatus.DONE

    def _wait_til_vm_is_available(self, initial_output: str) -> ApplicationVm:
        """Never returns None: a vm that did not become available is fatal."""
        self._log.info("vm_availability_waiting")
        progress_checker = SshVmCreateProgressChecker(
            initial_output, self.context(), self._shell_client, self._ssh_target, self._config
        )
        application_vm = self.wait_for(progress_checker, self.waiter_parameters, self._sleeper)
        if application_vm is None:
            raise VmNotAvailableError(
                f"{self.context()}{progress_checker.description} did not become available"
            )
        return application_vm

    def _persist_model(self, application_vm: ApplicationVm) -> None:
        """Attaches the vm to the environment and persists them together."""
        self.environment.add_application_vm(application_vm)
        try:
            self._environment_tx.update_environment(self.environment)
        except Exception:
            self.environment.remove_application_vm(application_vm)
            raise
        self._log.info(
            "vm_created",
            hostname=application_vm.hostname,
            ip_address=application_vm.ip_address,
            application_vm_id=application_vm.id,
        )


class VmNotAvailableError(Exception):
    """Raised when a created vm never became available within the wait budget."""
