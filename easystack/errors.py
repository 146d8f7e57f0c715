"""
EasyStack error types.

Every failure a node can surface to its caller is one of these, except
network-level failures during a proxied service call, which are raised
as the underlying ``httpx.TransportError`` unchanged.
"""

from typing import Optional


class EasyStackError(Exception):
    """Base class for all EasyStack errors."""


class FileWriteError(EasyStackError):
    """Credential material could not be staged on disk."""


class ProvisioningError(EasyStackError):
    """A provisioning script exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class DeploymentFailure(ProvisioningError):
    """The install script failed."""


class UninstallFailure(ProvisioningError):
    """The uninstall script failed."""


class MissingSecretError(EasyStackError):
    """No client secret is available; a deploy has to run first."""


class AuthError(EasyStackError):
    """The token endpoint was unreachable or rejected the credentials."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OperationCancelled(EasyStackError):
    """An in-flight provisioning run was cancelled through its node."""
