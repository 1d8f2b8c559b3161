"""Tables of the mock network vault."""

from typing import Optional

from sqlalchemy import (
    BigInteger,
    ForeignKey,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for vault tables."""


class AccountDO(Base):
    """An account on the network."""

    __tablename__ = "vault_account"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    keyword: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    """Account locator."""

    pin: Mapped[str] = mapped_column(String, nullable=False)

    password_sha256: Mapped[str] = mapped_column(String, nullable=False)

    root_dir_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    """The user root, parent of all application roots and the drive."""

    drive_dir_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    """The shared drive root."""


class AppDO(Base):
    """Maps an application to its root directory."""

    __tablename__ = "vault_app"
    __table_args__ = (UniqueConstraint("account_id", "app_id", "vendor"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("vault_account.id"), index=True)
    app_id: Mapped[str] = mapped_column(String, nullable=False)
    vendor: Mapped[str] = mapped_column(String, nullable=False)
    dir_id: Mapped[int] = mapped_column(BigInteger, nullable=False)


class DirectoryDO(Base):
    """A directory node."""

    __tablename__ = "vault_directory"
    __table_args__ = (UniqueConstraint("parent_id", "name"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)

    parent_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, index=True, nullable=True
    )
    """Parent directory, None for the user root."""

    name: Mapped[str] = mapped_column(String, nullable=False)
    user_metadata: Mapped[str] = mapped_column(Text, default="", nullable=False)
    is_private: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_versioned: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_on: Mapped[int] = mapped_column(BigInteger, nullable=False)
    modified_on: Mapped[int] = mapped_column(BigInteger, nullable=False)


class FileDO(Base):
    """A file node and its content."""

    __tablename__ = "vault_file"
    __table_args__ = (UniqueConstraint("directory_id", "name"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    directory_id: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    user_metadata: Mapped[str] = mapped_column(Text, default="", nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    content: Mapped[bytes] = mapped_column(LargeBinary, default=b"", nullable=False)
    created_on: Mapped[int] = mapped_column(BigInteger, nullable=False)
    modified_on: Mapped[int] = mapped_column(BigInteger, nullable=False)
