"""Environment aggregate: one blue/green deployable slot with its vms and databases."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, PrivateAttr

from bluegreen.domain.models.base import PersistedEntity


PORT_MIN = 0
PORT_MAX = 65535


class DatabaseType(str, Enum):
    """Kinds of physical database instances."""

    RDS = "rds"
    LOCAL = "local"


class Application(PersistedEntity):
    """An application runs on a vm and implements a restful interface at a
    particular url path whereby the app can receive blue/green directives.
    """

    scheme: str = Field(default="http", max_length=10)
    port: int = Field(ge=PORT_MIN, le=PORT_MAX)
    url_path: str = Field(pattern=r"^/", max_length=255)

    _application_vm: ApplicationVm | None = PrivateAttr(default=None)

    @property
    def application_vm(self) -> ApplicationVm | None:
        return self._application_vm

    def make_hostname_uri(self) -> str:
        """Produces a URI string 'scheme://hostname:port/urlPath'."""
        if self._application_vm is None:
            raise EnvironmentStateError(f"{self!r} is not attached to an application vm")
        return f"{self.scheme}://{self._application_vm.hostname}:{self.port}{self.url_path}"

    def __repr__(self) -> str:
        return (
            f"Application[id: {self.id}, scheme: {self.scheme}, "
            f"port: {self.port}, urlPath: {self.url_path}]"
        )


class ApplicationVm(PersistedEntity):
    """A virtual machine hosting one or more applications."""

    hostname: str
    ip_address: str
    applications: list[Application] = Field(default_factory=list)

    _environment: Environment | None = PrivateAttr(default=None)

    def model_post_init(self, _context: Any) -> None:
        for application in self.applications:
            application._application_vm = self

    @property
    def environment(self) -> Environment | None:
        """Owning environment; None while the vm is transient."""
        return self._environment

    def add_application(self, application: Application) -> None:
        self.applications.append(application)
        application._application_vm = self


class PhysicalDatabase(PersistedEntity):
    """One managed database instance, e.g. an Amazon RDS instance."""

    db_type: DatabaseType = DatabaseType.RDS
    instance_name: str
    live: bool = False
    driver_class_name: str = ""
    url: str = ""
    username: str = ""

    def is_same_instance(self, other: PhysicalDatabase) -> bool:
        return self.db_type == other.db_type and self.instance_name == other.instance_name


class LogicalDatabase(PersistedEntity):
    """A named database tier, backed by one physical instance at a time."""

    log_name: str
    physical_database: PhysicalDatabase | None = None

    _environment: Environment | None = PrivateAttr(default=None)

    @property
    def environment(self) -> Environment | None:
        return self._environment


class Environment(PersistedEntity):
    """Aggregate root for one deployable slot (e.g. 'blue' or 'green').

    Mutated only by tasks, and persisted only through an EnvironmentTx.
    """

    env_name: str
    application_vms: list[ApplicationVm] = Field(default_factory=list)
    logical_databases: list[LogicalDatabase] = Field(default_factory=list)

    def add_application_vm(self, application_vm: ApplicationVm) -> None:
        if application_vm.environment is not None:
            raise EnvironmentStateError(
                f"Application vm '{application_vm.hostname}' already belongs to environment "
                f"'{application_vm.environment.env_name}'"
            )
        self.application_vms.append(application_vm)
        application_vm._environment = self

    def remove_application_vm(self, application_vm: ApplicationVm) -> None:
        self.application_vms = [vm for vm in self.application_vms if vm is not application_vm]
        application_vm._environment = None

    def add_logical_database(self, logical_database: LogicalDatabase) -> None:
        self.logical_databases.append(logical_database)
        logical_database._environment = self

    def find_logical_database(self, log_name: str) -> LogicalDatabase | None:
        for logical_database in self.logical_databases:
            if logical_database.log_name == log_name:
                return logical_database
        return None

    def find_application_vm(self, hostname: str) -> ApplicationVm | None:
        for application_vm in self.application_vms:
            if application_vm.hostname == hostname:
                return application_vm
        return None

    @property
    def applications(self) -> list[Application]:
        return [app for vm in self.application_vms for app in vm.applications]

    def link_children(self) -> Environment:
        """Restores back-references of a freshly loaded (fully persisted) aggregate."""
        for application_vm in self.application_vms:
            application_vm._environment = self
            for application in application_vm.applications:
                application._application_vm = application_vm
        for logical_database in self.logical_databases:
            logical_database._environment = self
        return self


class EnvironmentStateError(Exception):
    """Raised when the environment aggregate is not in the state an operation requires."""
