"""
azure-identity credential factory.

Supported methods (AuthConfig.method):
    - default: DefaultAzureCredential chain (env vars, managed identity, CLI, ...)
    - cli: AzureCliCredential, for interactive development
    - client_secret: Service Principal with client id/secret
    - certificate: Service Principal with a certificate file
    - managed_identity: system- or user-assigned managed identity

The returned objects satisfy the TokenProvider protocol and plug directly
into BearerTokenCredentialPolicy.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from azure.identity import (
    AzureCliCredential,
    CertificateCredential,
    ClientSecretCredential,
    DefaultAzureCredential,
    ManagedIdentityCredential,
)
from azure.identity import aio as identity_aio

from sdk_core.errors.exceptions import AuthError

if TYPE_CHECKING:
    from sdk_core.config import AuthConfig

logger = logging.getLogger(__name__)

AUTH_METHOD_DEFAULT = "default"
AUTH_METHOD_CLI = "cli"
AUTH_METHOD_CLIENT_SECRET = "client_secret"
AUTH_METHOD_CERTIFICATE = "certificate"
AUTH_METHOD_MANAGED_IDENTITY = "managed_identity"

AUTH_METHODS = (
    AUTH_METHOD_DEFAULT,
    AUTH_METHOD_CLI,
    AUTH_METHOD_CLIENT_SECRET,
    AUTH_METHOD_CERTIFICATE,
    AUTH_METHOD_MANAGED_IDENTITY,
)


def _require(auth_config: "AuthConfig", *fields: str) -> None:
    missing = [name for name in fields if not getattr(auth_config, name, None)]
    if missing:
        raise AuthError(
            f"Auth method '{auth_config.method}' requires: {', '.join(missing)}",
            context={"credential_type": auth_config.method, "missing": missing},
        )


def _check_certificate(auth_config: "AuthConfig") -> None:
    if not Path(auth_config.certificate_path).exists():
        raise AuthError(
            f"Certificate file not found: {auth_config.certificate_path}",
            context={"credential_type": auth_config.method},
        )


def _validate(auth_config: "AuthConfig") -> str:
    method = (auth_config.method or AUTH_METHOD_DEFAULT).lower()
    if method not in AUTH_METHODS:
        raise AuthError(
            f"Unknown auth method '{auth_config.method}'. "
            f"Expected one of: {', '.join(AUTH_METHODS)}"
        )
    if method == AUTH_METHOD_CLIENT_SECRET:
        _require(auth_config, "tenant_id", "client_id", "client_secret")
    elif method == AUTH_METHOD_CERTIFICATE:
        _require(auth_config, "tenant_id", "client_id", "certificate_path")
        _check_certificate(auth_config)
    return method


def build_credential(auth_config: "AuthConfig"):
    """
    Create a blocking azure-identity credential for auth_config.

    Raises:
        AuthError: Unknown method or a required field is missing
    """
    method = _validate(auth_config)
    logger.debug(
        "Creating credential",
        extra={"credential_type": method},
    )

    if method == AUTH_METHOD_CLI:
        return AzureCliCredential(tenant_id=auth_config.tenant_id or "")
    if method == AUTH_METHOD_CLIENT_SECRET:
        return ClientSecretCredential(
            tenant_id=auth_config.tenant_id,
            client_id=auth_config.client_id,
            client_secret=auth_config.client_secret,
        )
    if method == AUTH_METHOD_CERTIFICATE:
        return CertificateCredential(
            tenant_id=auth_config.tenant_id,
            client_id=auth_config.client_id,
            certificate_path=auth_config.certificate_path,
        )
    if method == AUTH_METHOD_MANAGED_IDENTITY:
        # client_id selects a user-assigned identity; None means system-assigned
        return ManagedIdentityCredential(client_id=auth_config.client_id)
    return DefaultAzureCredential()


def build_async_credential(auth_config: "AuthConfig"):
    """Asyncio variant of build_credential using azure.identity.aio."""
    method = _validate(auth_config)
    logger.debug(
        "Creating async credential",
        extra={"credential_type": method},
    )

    if method == AUTH_METHOD_CLI:
        return identity_aio.AzureCliCredential(tenant_id=auth_config.tenant_id or "")
    if method == AUTH_METHOD_CLIENT_SECRET:
        return identity_aio.ClientSecretCredential(
            tenant_id=auth_config.tenant_id,
            client_id=auth_config.client_id,
            client_secret=auth_config.client_secret,
        )
    if method == AUTH_METHOD_CERTIFICATE:
        return identity_aio.CertificateCredential(
            tenant_id=auth_config.tenant_id,
            client_id=auth_config.client_id,
            certificate_path=auth_config.certificate_path,
        )
    if method == AUTH_METHOD_MANAGED_IDENTITY:
        return identity_aio.ManagedIdentityCredential(client_id=auth_config.client_id)
    return identity_aio.DefaultAzureCredential()


__all__ = [
    "AUTH_METHODS",
    "AUTH_METHOD_CERTIFICATE",
    "AUTH_METHOD_CLI",
    "AUTH_METHOD_CLIENT_SECRET",
    "AUTH_METHOD_DEFAULT",
    "AUTH_METHOD_MANAGED_IDENTITY",
    "build_async_credential",
    "build_credential",
]
