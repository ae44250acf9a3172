"""SQLAlchemy ORM models."""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class EnvironmentORM(Base):
    __tablename__ = "ENVIRONMENT"

    id = Column("ENV_ID", Integer, primary_key=True, autoincrement=True)
    env_name = Column("ENV_NAME", String(32), nullable=False, unique=True)

    application_vms = relationship(
        "ApplicationVmORM",
        back_populates="environment",
        cascade="all, delete-orphan",
        order_by="ApplicationVmORM.id",
    )
    logical_databases = relationship(
        "LogicalDatabaseORM",
        back_populates="environment",
        cascade="all, delete-orphan",
        order_by="LogicalDatabaseORM.id",
    )


class ApplicationVmORM(Base):
    __tablename__ = "APPLICATION_VM"

    id = Column("APPVM_ID", Integer, primary_key=True, autoincrement=True)
    environment_id = Column(
        "FK_ENV_ID", Integer, ForeignKey("ENVIRONMENT.ENV_ID"), nullable=False, index=True
    )
    hostname = Column("APPVM_HOSTNAME", String(255), nullable=False)
    ip_address = Column("APPVM_IP_ADDRESS", String(45), nullable=False)

    environment = relationship("EnvironmentORM", back_populates="application_vms")
    applications = relationship(
        "ApplicationORM",
        back_populates="application_vm",
        cascade="all, delete-orphan",
        order_by="ApplicationORM.id",
    )


class ApplicationORM(Base):
    __tablename__ = "APPLICATION"

    id = Column("APP_ID", Integer, primary_key=True, autoincrement=True)
    application_vm_id = Column(
        "FK_APPVM_ID", Integer, ForeignKey("APPLICATION_VM.APPVM_ID"), nullable=False, index=True
    )
    scheme = Column("APP_SCHEME", String(10), nullable=False)
    port = Column("APP_PORT", Integer, nullable=False)
    url_path = Column("APP_URL_PATH", String(255), nullable=False)

    application_vm = relationship("ApplicationVmORM", back_populates="applications")


class LogicalDatabaseORM(Base):
    __tablename__ = "LOGICAL_DATABASE"

    id = Column("LOGICAL_ID", Integer, primary_key=True, autoincrement=True)
    environment_id = Column(
        "FK_ENV_ID", Integer, ForeignKey("ENVIRONMENT.ENV_ID"), nullable=False, index=True
    )
    log_name = Column("LOGICAL_NAME", String(32), nullable=False)

    environment = relationship("EnvironmentORM", back_populates="logical_databases")
    # A replaced physical database keeps its row with a null foreign key.
    physical_database = relationship(
        "PhysicalDatabaseORM",
        back_populates="logical_database",
        uselist=False,
        cascade="save-update, merge",
    )


class PhysicalDatabaseORM(Base):
    __tablename__ = "PHYSICAL_DATABASE"

    id = Column("PHYSICAL_ID", Integer, primary_key=True, autoincrement=True)
    logical_database_id = Column(
        "FK_LOGICAL_ID",
        Integer,
        ForeignKey("LOGICAL_DATABASE.LOGICAL_ID"),
        nullable=True,
        index=True,
    )
    db_type = Column("DB_TYPE", String(10), nullable=False)
    instance_name = Column("INSTANCE_NAME", String(255), nullable=False)
    live = Column("IS_LIVE", Boolean, nullable=False, default=False)
    driver_class_name = Column("DRIVER_CLASS_NAME", String(255), nullable=False, default="")
    url = Column("URL", String(255), nullable=False, default="")
    username = Column("USERNAME", String(255), nullable=False, default="")

    logical_database = relationship("LogicalDatabaseORM", back_populates="physical_database")
