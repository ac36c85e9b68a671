"""
Credential resolution for remote sources.

Pure decision logic: nothing here touches the network or the disk.
"""

import base64
from typing import Iterable, Optional
from urllib.parse import quote

from ..models import BasicAuth, CredentialInput, Credentials, TokenAuth
from ..infrastructure.error_handler import AuthRequiredError


REDACTED = "***"


def resolve_credentials(
    token: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    is_private: bool = False
) -> Credentials:
    """
    Decide which authentication mode a run uses.

    A token always wins over username/password. Public sources fall back
    to anonymous access; private ones require credentials.

    Args:
        token: Personal access token
        username: Account name for basic auth
        password: Password for basic auth
        is_private: Whether the source refuses anonymous access

    Returns:
        TokenAuth, BasicAuth or None for anonymous access

    Raises:
        AuthRequiredError: If the source is private and no credentials were given
    """
    if token:
        return TokenAuth(token)
    if username and password:
        return BasicAuth(username, password)
    if is_private:
        raise AuthRequiredError("Authentication required for private repositories")
    return None


def resolve_input(credentials: CredentialInput, is_private: bool) -> Credentials:
    """Resolve a ``CredentialInput`` bundle."""

    return resolve_credentials(
        credentials.token,
        credentials.username,
        credentials.password,
        is_private
    )


def describe_credentials(credentials: Credentials) -> str:
    """Secret-free label of the authentication mode, for logs."""

    if isinstance(credentials, TokenAuth):
        return "token"
    if isinstance(credentials, BasicAuth):
        return "basic"
    return "anonymous"


def _basic_pair(credentials: Credentials) -> Optional[str]:
    if isinstance(credentials, TokenAuth):
        return f"x-access-token:{credentials.token}"
    if isinstance(credentials, BasicAuth):
        return f"{credentials.username}:{credentials.password}"
    return None


def _encoded_pair(credentials: Credentials) -> Optional[str]:
    pair = _basic_pair(credentials)
    if pair is None:
        return None
    return base64.b64encode(pair.encode("utf-8")).decode("ascii")


def git_auth_header(credentials: Credentials) -> Optional[str]:
    """
    HTTP header carrying ``credentials`` for a single git invocation.

    Passed as ``-c http.extraHeader=...`` so the secret never ends up in
    the clone URL or in the checkout's ``.git/config``.

    Returns:
        ``Authorization: Basic ...`` or None for anonymous access
    """
    encoded = _encoded_pair(credentials)
    if encoded is None:
        return None
    return f"Authorization: Basic {encoded}"


def _secrets(credentials: Credentials) -> Iterable[str]:
    # URLs carry the percent-encoded form, headers the base64 one
    if isinstance(credentials, TokenAuth):
        yield credentials.token
        yield quote(credentials.token, safe="")
    elif isinstance(credentials, BasicAuth):
        yield credentials.password
        yield quote(credentials.password, safe="")
    encoded = _encoded_pair(credentials)
    if encoded:
        yield encoded


def redact(text: str, credentials: Credentials) -> str:
    """Mask every secret of ``credentials`` occurring in ``text``."""

    for secret in _secrets(credentials):
        if secret:
            text = text.replace(secret, REDACTED)
    return text


__all__ = [
    "resolve_credentials",
    "resolve_input",
    "describe_credentials",
    "git_auth_header",
    "redact",
]
