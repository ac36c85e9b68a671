"""
Remote source domain models for AssetSync.

This module contains strongly typed data classes representing the remote
repository, the credentials used to reach it and the individual assets
fetched from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse


@dataclass(frozen=True)
class TokenAuth:
    """Personal access token credentials."""

    token: str = field(repr=False)


@dataclass(frozen=True)
class BasicAuth:
    """Username/password credentials."""

    username: str
    password: str = field(repr=False)


# ``None`` is the anonymous variant
Credentials = Optional[Union[TokenAuth, BasicAuth]]


@dataclass(frozen=True)
class CredentialInput:
    """Raw credential fields as entered by the caller."""

    token: Optional[str] = field(default=None, repr=False)
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.token and not (self.username and self.password)


@dataclass(frozen=True)
class SourceLocator:
    """Immutable identity of the remote repository."""

    owner: str
    repo: str
    host: str = "github.com"
    branch: str = "main"
    is_private: bool = False

    def __post_init__(self) -> None:
        if not self.owner or not self.repo:
            raise ValueError("Repository owner and name are required")
        if not self.host:
            raise ValueError("Repository host is required")

    @property
    def display_name(self) -> str:
        return f'{self.owner}/{self.repo}'

    @property
    def raw_host(self) -> str:
        """Host serving raw file contents."""

        if self.host == "github.com":
            return "raw.githubusercontent.com"
        return f"raw.{self.host}"

    @property
    def clone_url(self) -> str:
        """Clone URL without any credentials."""

        return f"https://{self.host}/{self.owner}/{self.repo}.git"

    @classmethod
    def parse(
        cls,
        value: str,
        branch: str = "main",
        is_private: bool = False,
        default_host: str = "github.com"
    ) -> "SourceLocator":
        """
        Parse ``owner/repo`` or an https repository URL.

        Args:
            value: Short ``owner/repo`` form or full URL
            branch: Branch used for raw file access
            is_private: Whether the repository requires credentials
            default_host: Host used for the short form

        Returns:
            SourceLocator for the repository
        """
        value = value.strip().rstrip("/")
        host = default_host
        if "://" in value:
            parsed = urlparse(value)
            if not parsed.hostname:
                raise ValueError(f"Invalid repository URL: {value}")
            host = parsed.hostname
            value = parsed.path.lstrip("/")
        if value.endswith(".git"):
            value = value[:-4]

        parts = value.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Expected 'owner/repo', got: {value!r}")
        return cls(
            owner=parts[0],
            repo=parts[1],
            host=host,
            branch=branch,
            is_private=is_private
        )


@dataclass(frozen=True)
class FetchTarget:
    """A single named asset pulled outside the bulk clone."""

    remote_file_name: str
    destination_path: Path
    label: str = ""

    def __post_init__(self) -> None:
        if not self.remote_file_name:
            raise ValueError("Remote file name is required")

    @property
    def display_label(self) -> str:
        return self.label or self.remote_file_name


__all__ = [
    "TokenAuth",
    "BasicAuth",
    "Credentials",
    "CredentialInput",
    "SourceLocator",
    "FetchTarget",
]
