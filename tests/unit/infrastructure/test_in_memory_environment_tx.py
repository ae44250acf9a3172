"""Unit tests for the in-memory environment transaction boundary."""

from __future__ import annotations

import pytest

from bluegreen.domain.models.environment import (
    Application,
    ApplicationVm,
    Environment,
    LogicalDatabase,
    PhysicalDatabase,
)
from bluegreen.domain.ports.repositories import EnvironmentNotFoundError
from bluegreen.infrastructure.persistence.repositories.in_memory import InMemoryEnvironmentTx


class TestInMemoryEnvironmentTx:
    def test_assigns_ids_to_whole_aggregate(self, environment_tx) -> None:
        env = Environment(env_name="blue")
        env.add_application_vm(ApplicationVm(
            hostname="h", ip_address="1.1.1.1", applications=[Application(port=80, url_path="/")]
        ))
        env.add_logical_database(LogicalDatabase(
            log_name="shop", physical_database=PhysicalDatabase(instance_name="db1")
        ))
        environment_tx.update_environment(env)

        entities = [
            env,
            env.application_vms[0],
            env.applications[0],
            env.logical_databases[0],
            env.logical_databases[0].physical_database,
        ]
        assert all(entity.is_persisted for entity in entities)
        assert len({entity.id for entity in entities}) == len(entities)

    def test_find_returns_linked_copy(self, environment_tx, live_environment) -> None:
        loaded = environment_tx.find_named_environment("blue")
        assert loaded is not live_environment
        assert loaded == live_environment
        assert loaded.application_vms[0].environment is loaded
        assert loaded.applications[0].make_hostname_uri() == "https://app1.example.com:8443/shop"

    def test_unsaved_edits_do_not_leak(self, environment_tx, live_environment) -> None:
        live_environment.add_logical_database(LogicalDatabase(log_name="orders"))
        loaded = environment_tx.find_named_environment("blue")
        assert loaded.find_logical_database("orders") is None

    def test_not_found(self, environment_tx) -> None:
        with pytest.raises(EnvironmentNotFoundError):
            environment_tx.find_named_environment("nope")

    def test_rename_replaces_entry(self, environment_tx, live_environment) -> None:
        live_environment.env_name = "cyan"
        environment_tx.update_environment(live_environment)
        assert environment_tx.snapshot("blue") is None
        assert environment_tx.find_named_environment("cyan").id == live_environment.id

    def test_store_shared_between_instances(self, live_environment) -> None:
        assert InMemoryEnvironmentTx().find_named_environment("blue") == live_environment

    def test_clear(self, live_environment) -> None:
        InMemoryEnvironmentTx.clear()
        with pytest.raises(EnvironmentNotFoundError):
            InMemoryEnvironmentTx().find_named_environment("blue")

    def test_clear_restarts_ids(self, environment_tx) -> None:
        environment_tx.update_environment(Environment(env_name="blue"))
        InMemoryEnvironmentTx.clear()
        env = Environment(env_name="green")
        environment_tx.update_environment(env)
        assert env.id == 1
        assert environment_tx.snapshot("blue") is None
