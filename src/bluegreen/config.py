"""Application configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


class DatabaseSettings(BaseSettings):
    """Database configuration for the environment topology store."""

    host: str = Field(default="localhost", alias="DB_HOST")
    port: int = Field(default=5432, alias="DB_PORT")
    name: str = Field(default="bluegreen", alias="DB_NAME")
    user: str = Field(default="bluegreen", alias="DB_USER")
    password: str = Field(default="", alias="DB_PASSWORD")
    pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    max_overflow: int = Field(default=2, alias="DB_MAX_OVERFLOW")
    pool_timeout: int = Field(default=30, alias="DB_POOL_TIMEOUT")
    url: str = Field(default="", alias="DB_URL")

    @property
    def sync_url(self) -> str:
        if self.url:
            return self.url
        return (
            f"postgresql+psycopg2://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.name}"
        )

    model_config = {"env_prefix": "DB_", "extra": "ignore", "populate_by_name": True}


class SshTargetSettings(BaseSettings):
    """The third-party host that knows how to create application vms."""

    hostname: str = Field(default="localhost", alias="SSH_HOSTNAME")
    port: int = Field(default=22, alias="SSH_PORT")
    username: str = Field(default="bluegreen", alias="SSH_USERNAME")
    password: str = Field(default="", alias="SSH_PASSWORD")
    key_filename: str = Field(default="", alias="SSH_KEY_FILENAME")
    connect_timeout_seconds: float = Field(default=30.0, alias="SSH_CONNECT_TIMEOUT")

    model_config = {"env_prefix": "SSH_", "extra": "ignore", "populate_by_name": True}


class SshVmCreateSettings(BaseSettings):
    """Commands and output patterns for vm creation over ssh.

    ``${envName}`` is substituted into the initial command and ``${hostname}``
    into the followup command.
    """

    initial_command: str = Field(
        default="create-vm --env ${envName}", alias="SSH_VMCREATE_INITIAL_COMMAND"
    )
    initial_regexp_hostname: str = Field(
        default=r"[Hh]ostname:?\s+(\S+)", alias="SSH_VMCREATE_INITIAL_REGEXP_HOSTNAME"
    )
    initial_regexp_ipaddress: str = Field(
        default=r"[Ii][Pp] ?[Aa]ddress:?\s+(\S+)", alias="SSH_VMCREATE_INITIAL_REGEXP_IPADDRESS"
    )
    followup_command: str = Field(
        default="check-vm --hostname ${hostname}", alias="SSH_VMCREATE_FOLLOWUP_COMMAND"
    )
    followup_regexp_done: str = Field(
        default=r"\bAVAILABLE\b", alias="SSH_VMCREATE_FOLLOWUP_REGEXP_DONE"
    )
    followup_regexp_error: str = Field(
        default=r"\bERROR\b", alias="SSH_VMCREATE_FOLLOWUP_REGEXP_ERROR"
    )
    max_num_waits: int = Field(default=120, alias="SSH_VMCREATE_MAX_NUM_WAITS")
    wait_report_interval: int = Field(default=4, alias="SSH_VMCREATE_WAIT_REPORT_INTERVAL")
    wait_delay_milliseconds: int = Field(
        default=30000, alias="SSH_VMCREATE_WAIT_DELAY_MILLISECONDS"
    )

    model_config = {"env_prefix": "SSH_VMCREATE_", "extra": "ignore", "populate_by_name": True}


class RdsSettings(BaseSettings):
    """Amazon RDS configuration for the database copy."""

    region: str = Field(default="us-west-2", alias="RDS_REGION")
    stage_security_group_ids: Annotated[list[str], NoDecode] = Field(
        default_factory=list, alias="RDS_STAGE_SECURITY_GROUP_IDS"
    )
    max_num_waits: int = Field(default=120, alias="RDS_MAX_NUM_WAITS")
    wait_report_interval: int = Field(default=4, alias="RDS_WAIT_REPORT_INTERVAL")
    wait_delay_milliseconds: int = Field(default=30000, alias="RDS_WAIT_DELAY_MILLISECONDS")

    model_config = {"env_prefix": "RDS_", "extra": "ignore", "populate_by_name": True}

    @field_validator("stage_security_group_ids", mode="before")
    @classmethod
    def split_security_group_ids(cls, value: Any) -> Any:
        """Accepts a comma-separated list, as security groups are given in the environment."""
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


class ApplicationClientSettings(BaseSettings):
    """HTTP client settings for talking to bluegreen-aware applications."""

    timeout_seconds: float = Field(default=10.0, alias="APP_CLIENT_TIMEOUT_SECONDS")
    discovery_path: str = Field(default="/bluegreen/dbDiscover", alias="APP_CLIENT_DISCOVERY_PATH")

    model_config = {"env_prefix": "APP_CLIENT_", "extra": "ignore", "populate_by_name": True}


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    service_name: str = Field(default="blue-green-manager", alias="SERVICE_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(default=True, alias="JSON_LOGS")

    model_config = {"env_prefix": "OBS_", "extra": "ignore", "populate_by_name": True}


class Settings(BaseSettings):
    """Main application settings."""

    debug: bool = Field(default=False, alias="DEBUG")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    ssh_target: SshTargetSettings = Field(default_factory=SshTargetSettings)
    ssh_vm_create: SshVmCreateSettings = Field(default_factory=SshVmCreateSettings)
    rds: RdsSettings = Field(default_factory=RdsSettings)
    application_client: ApplicationClientSettings = Field(
        default_factory=ApplicationClientSettings
    )
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
