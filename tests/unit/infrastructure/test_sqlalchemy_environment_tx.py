"""Unit tests for the SQLAlchemy environment transaction boundary, on SQLite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from bluegreen.config import DatabaseSettings
from bluegreen.domain.models.environment import (
    Application,
    ApplicationVm,
    DatabaseType,
    Environment,
    LogicalDatabase,
    PhysicalDatabase,
)
from bluegreen.domain.ports.repositories import EnvironmentNotFoundError
from bluegreen.infrastructure.persistence.database import DatabaseManager
from bluegreen.infrastructure.persistence.models import ApplicationVmORM, PhysicalDatabaseORM
from bluegreen.infrastructure.persistence.repositories.environment_tx import (
    SqlAlchemyEnvironmentTx,
)


@pytest.fixture
def database() -> Iterator[DatabaseManager]:
    database = DatabaseManager(DatabaseSettings(url="sqlite://"))
    database.initialize()
    database.create_schema()
    yield database
    database.close()


@pytest.fixture
def tx(database) -> SqlAlchemyEnvironmentTx:
    return SqlAlchemyEnvironmentTx(database)


def make_environment() -> Environment:
    env = Environment(env_name="blue")
    env.add_application_vm(ApplicationVm(
        hostname="app1.example.com",
        ip_address="10.0.0.1",
        applications=[Application(scheme="https", port=8443, url_path="/shop")],
    ))
    env.add_logical_database(LogicalDatabase(
        log_name="shopdb",
        physical_database=PhysicalDatabase(
            db_type=DatabaseType.RDS,
            instance_name="shopdb-live",
            live=True,
            url="jdbc:mysql://shopdb-live:3306/shop",
            username="shop",
        ),
    ))
    return env


class TestSqlAlchemyEnvironmentTx:
    def test_round_trip(self, tx) -> None:
        env = make_environment()
        tx.update_environment(env)
        assert env.is_persisted
        assert env.application_vms[0].is_persisted
        assert env.applications[0].is_persisted

        loaded = tx.find_named_environment("blue")
        assert loaded == env
        assert loaded.application_vms[0].hostname == "app1.example.com"
        assert loaded.applications[0].make_hostname_uri() == "https://app1.example.com:8443/shop"
        physical = loaded.find_logical_database("shopdb").physical_database
        assert physical.db_type == DatabaseType.RDS
        assert physical.live is True
        assert physical == env.logical_databases[0].physical_database

    def test_not_found(self, tx) -> None:
        with pytest.raises(EnvironmentNotFoundError):
            tx.find_named_environment("nope")

    def test_update_adds_new_vm_to_loaded_environment(self, tx, database) -> None:
        tx.update_environment(make_environment())
        env = tx.find_named_environment("blue")
        vm = ApplicationVm(hostname="app2.example.com", ip_address="10.0.0.2")
        env.add_application_vm(vm)
        tx.update_environment(env)

        assert vm.is_persisted
        with database.session() as session:
            count = session.execute(select(func.count()).select_from(ApplicationVmORM)).scalar()
        assert count == 2
        assert [v.hostname for v in tx.find_named_environment("blue").application_vms] == [
            "app1.example.com",
            "app2.example.com",
        ]

    def test_replacing_physical_database_keeps_logical_identity(self, tx, database) -> None:
        tx.update_environment(make_environment())
        env = tx.find_named_environment("blue")
        logical = env.find_logical_database("shopdb")
        logical.physical_database = PhysicalDatabase(instance_name="shopdb-blue2")
        tx.update_environment(env)

        loaded = tx.find_named_environment("blue").find_logical_database("shopdb")
        assert loaded.id == logical.id
        assert loaded.physical_database.instance_name == "shopdb-blue2"
        with database.session() as session:
            rows = session.execute(select(PhysicalDatabaseORM)).scalars().all()
            orphaned = [row.instance_name for row in rows if row.logical_database_id is None]
        assert orphaned == ["shopdb-live"]

    def test_failed_update_assigns_no_ids(self, tx) -> None:
        tx.update_environment(make_environment())
        duplicate = Environment(env_name="blue")
        vm = ApplicationVm(hostname="h", ip_address="1.1.1.1")
        duplicate.add_application_vm(vm)
        with pytest.raises(IntegrityError):
            tx.update_environment(duplicate)
        assert not duplicate.is_persisted
        assert not vm.is_persisted

    def test_unknown_persisted_id(self, tx) -> None:
        with pytest.raises(EnvironmentNotFoundError):
            tx.update_environment(Environment(id=999, env_name="ghost"))

    def test_ipv6_vm_address(self, tx) -> None:
        address = "2001:0db8:85a3:0000:0000:8a2e:0370:7334"
        column = ApplicationVmORM.ip_address.property.columns[0]
        assert column.type.length >= len("ffff:ffff:ffff:ffff:ffff:ffff:255.255.255.255")
        env = Environment(env_name="green")
        env.add_application_vm(ApplicationVm(hostname="app6.example.com", ip_address=address))
        tx.update_environment(env)
        assert tx.find_named_environment("green").application_vms[0].ip_address == address
