"""SQLAlchemy implementation of the environment transaction boundary."""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from bluegreen.domain.models.base import PersistedEntity
from bluegreen.domain.models.environment import (
    Application,
    ApplicationVm,
    DatabaseType,
    Environment,
    LogicalDatabase,
    PhysicalDatabase,
)
from bluegreen.domain.ports.repositories import EnvironmentNotFoundError, EnvironmentTx
from bluegreen.infrastructure.persistence.database import DatabaseManager
from bluegreen.infrastructure.persistence.models import (
    ApplicationORM,
    ApplicationVmORM,
    Base,
    EnvironmentORM,
    LogicalDatabaseORM,
    PhysicalDatabaseORM,
)


logger = structlog.get_logger(__name__)


class SqlAlchemyEnvironmentTx(EnvironmentTx):
    """Reads and writes the environment aggregate, one transaction per call."""

    def __init__(self, database: DatabaseManager) -> None:
        self._database = database

    def find_named_environment(self, env_name: str) -> Environment:
        with self._database.session() as session:
            orm = session.execute(
                select(EnvironmentORM).where(EnvironmentORM.env_name == env_name)
            ).scalar_one_or_none()
            if orm is None:
                raise EnvironmentNotFoundError(f"Environment '{env_name}' not found")
            return self._to_domain(orm)

    def update_environment(self, environment: Environment) -> None:
        # Ids are handed back only after the commit succeeded.
        assigned: list[tuple[PersistedEntity, Base]] = []
        with self._database.session() as session:
            orm = self._load_or_create(session, environment)
            self._sync(orm, environment, assigned)
            session.flush()
            new_ids = [(entity, row.id) for entity, row in assigned]
        for entity, new_id in new_ids:
            if not entity.is_persisted:
                entity.id = new_id
        logger.info(
            "environment_updated",
            env_name=environment.env_name,
            env_id=environment.id,
            application_vms=len(environment.application_vms),
            logical_databases=len(environment.logical_databases),
        )

    def _load_or_create(self, session: Session, environment: Environment) -> EnvironmentORM:
        if environment.is_persisted:
            orm = session.get(EnvironmentORM, environment.id)
            if orm is None:
                raise EnvironmentNotFoundError(
                    f"Environment id {environment.id} ('{environment.env_name}') not found"
                )
            return orm
        orm = EnvironmentORM()
        session.add(orm)
        return orm

    def _sync(
        self,
        orm: EnvironmentORM,
        environment: Environment,
        assigned: list[tuple[PersistedEntity, Base]],
    ) -> None:
        orm.env_name = environment.env_name
        assigned.append((environment, orm))

        existing_vms = {row.id: row for row in orm.application_vms}
        vm_rows = []
        for vm in environment.application_vms:
            vm_row = existing_vms.get(vm.id) or ApplicationVmORM()
            vm_row.hostname = vm.hostname
            vm_row.ip_address = vm.ip_address
            assigned.append((vm, vm_row))

            existing_apps = {row.id: row for row in vm_row.applications}
            app_rows = []
            for application in vm.applications:
                app_row = existing_apps.get(application.id) or ApplicationORM()
                app_row.scheme = application.scheme
                app_row.port = application.port
                app_row.url_path = application.url_path
                assigned.append((application, app_row))
                app_rows.append(app_row)
            vm_row.applications = app_rows
            vm_rows.append(vm_row)
        orm.application_vms = vm_rows

        existing_dbs = {row.id: row for row in orm.logical_databases}
        db_rows = []
        for logical_database in environment.logical_databases:
            db_row = existing_dbs.get(logical_database.id) or LogicalDatabaseORM()
            db_row.log_name = logical_database.log_name
            db_row.physical_database = self._sync_physical(
                db_row.physical_database, logical_database.physical_database, assigned
            )
            assigned.append((logical_database, db_row))
            db_rows.append(db_row)
        orm.logical_databases = db_rows

    @staticmethod
    def _sync_physical(
        current: PhysicalDatabaseORM | None,
        physical_database: PhysicalDatabase | None,
        assigned: list[tuple[PersistedEntity, Base]],
    ) -> PhysicalDatabaseORM | None:
        if physical_database is None:
            return None
        row = current if current is not None and current.id == physical_database.id else None
        if row is None:
            row = PhysicalDatabaseORM()
        row.db_type = physical_database.db_type.value
        row.instance_name = physical_database.instance_name
        row.live = physical_database.live
        row.driver_class_name = physical_database.driver_class_name
        row.url = physical_database.url
        row.username = physical_database.username
        assigned.append((physical_database, row))
        return row

    def _to_domain(self, orm: EnvironmentORM) -> Environment:
        environment = Environment(
            id=orm.id,
            env_name=orm.env_name,
            application_vms=[
                ApplicationVm(
                    id=vm_row.id,
                    hostname=vm_row.hostname,
                    ip_address=vm_row.ip_address,
                    applications=[
                        Application(
                            id=app_row.id,
                            scheme=app_row.scheme,
                            port=app_row.port,
                            url_path=app_row.url_path,
                        )
                        for app_row in vm_row.applications
                    ],
                )
                for vm_row in orm.application_vms
            ],
            logical_databases=[
                LogicalDatabase(
                    id=db_row.id,
                    log_name=db_row.log_name,
                    physical_database=self._physical_to_domain(db_row.physical_database),
                )
                for db_row in orm.logical_databases
            ],
        )
        return environment.link_children()

    @staticmethod
    def _physical_to_domain(row: PhysicalDatabaseORM | None) -> PhysicalDatabase | None:
        if row is None:
            return None
        return PhysicalDatabase(
            id=row.id,
            db_type=DatabaseType(row.db_type),
            instance_name=row.instance_name,
            live=row.live,
            driver_class_name=row.driver_class_name,
            url=row.url,
            username=row.username,
        )
