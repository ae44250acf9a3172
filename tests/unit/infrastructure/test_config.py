"""Unit tests for application configuration."""

from __future__ import annotations

import pytest

from bluegreen.config import (
    ApplicationClientSettings,
    DatabaseSettings,
    get_settings,
    ObservabilitySettings,
    RdsSettings,
    Settings,
    SshTargetSettings,
    SshVmCreateSettings,
)


class TestDatabaseSettings:
    def test_defaults(self) -> None:
        settings = DatabaseSettings()
        assert settings.host == "localhost"
        assert settings.port == 5432
        assert settings.pool_size == 5

    def test_sync_url(self) -> None:
        settings = DatabaseSettings(host="db", port=5432, name="test", user="u", password="p")
        assert settings.sync_url == "postgresql+psycopg2://u:p@db:5432/test"

    def test_url_override(self) -> None:
        settings = DatabaseSettings(url="sqlite://")
        assert settings.sync_url == "sqlite://"

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_HOST", "db.internal")
        assert DatabaseSettings().host == "db.internal"


class TestSshSettings:
    def test_target_defaults(self) -> None:
        settings = SshTargetSettings()
        assert settings.port == 22
        assert settings.key_filename == ""

    def test_vm_create_defaults(self) -> None:
        settings = SshVmCreateSettings()
        assert "${envName}" in settings.initial_command
        assert "${hostname}" in settings.followup_command
        assert settings.max_num_waits == 120
        assert settings.wait_report_interval == 4
        assert settings.wait_delay_milliseconds == 30000

    def test_vm_create_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SSH_VMCREATE_MAX_NUM_WAITS", "7")
        assert SshVmCreateSettings().max_num_waits == 7


class TestRdsSettings:
    def test_defaults(self) -> None:
        settings = RdsSettings()
        assert settings.region == "us-west-2"
        assert settings.stage_security_group_ids == []

    def test_security_groups_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RDS_STAGE_SECURITY_GROUP_IDS", "sg-1, sg-2")
        assert RdsSettings().stage_security_group_ids == ["sg-1", "sg-2"]

    @pytest.mark.parametrize("value", ["", " , "])
    def test_blank_security_groups(self, monkeypatch: pytest.MonkeyPatch, value) -> None:
        monkeypatch.setenv("RDS_STAGE_SECURITY_GROUP_IDS", value)
        assert RdsSettings().stage_security_group_ids == []

    def test_security_groups_by_name(self) -> None:
        settings = RdsSettings(stage_security_group_ids=["sg-3"])
        assert settings.stage_security_group_ids == ["sg-3"]

    def test_nested_in_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RDS_STAGE_SECURITY_GROUP_IDS", "sg-1,sg-2")
        assert Settings().rds.stage_security_group_ids == ["sg-1", "sg-2"]


class TestApplicationClientSettings:
    def test_defaults(self) -> None:
        settings = ApplicationClientSettings()
        assert settings.discovery_path == "/bluegreen/dbDiscover"


class TestObservabilitySettings:
    def test_defaults(self) -> None:
        settings = ObservabilitySettings()
        assert settings.log_level == "INFO"
        assert settings.json_logs is True


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DEBUG", raising=False)
        settings = Settings()
        assert settings.debug is False

    def test_nested_settings(self) -> None:
        settings = Settings()
        assert isinstance(settings.database, DatabaseSettings)
        assert isinstance(settings.ssh_vm_create, SshVmCreateSettings)
        assert isinstance(settings.rds, RdsSettings)

    def test_get_settings_cached(self) -> None:
        assert get_settings() is get_settings()
