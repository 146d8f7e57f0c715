"""
Credential materializer.

Provisioning scripts take the cluster credentials as file paths, so the
opaque blobs from the node configuration are written to private temporary
files right before each run and removed right after it.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ...errors import FileWriteError

logger = logging.getLogger("easystack.credentials")

Blob = Union[str, bytes]

# (prefix, suffix) per credential kind
KUBECONFIG_NAMING = ("kube-", ".yaml")
PRIVATE_KEY_NAMING = ("key-", ".key")
CERTIFICATE_NAMING = ("crt-", ".crt")


@dataclass
class TransientCredentialSet:
    """Credential files owned by exactly one provisioning invocation."""

    kubeconfig: Optional[Path] = None
    private_key: Optional[Path] = None
    certificate: Optional[Path] = None
    removed: bool = field(default=False, compare=False)

    def paths(self) -> List[Path]:
        """All materialized paths, in kubeconfig/key/certificate order."""
        return [p for p in (self.kubeconfig, self.private_key, self.certificate) if p is not None]

    def cleanup(self) -> None:
        """
        Remove every file of the set.

        Best-effort: failures are logged and never raised, and calling it
        more than once is harmless.
        """
        for path in self.paths():
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove credential file {path}: {e}")
        self.removed = True


class CredentialMaterializer:
    """Writes credential blobs to uniquely named owner-only temp files."""

    def __init__(self, temp_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            temp_dir: Directory for the files (system temp dir when None)
        """
        self.temp_dir = str(temp_dir) if temp_dir is not None else None

    def write(
        self,
        kubeconfig: Blob,
        private_key: Optional[Blob] = None,
        certificate: Optional[Blob] = None,
    ) -> TransientCredentialSet:
        """
        Materialize the given blobs.

        Blobs left as None are not written (uninstall only needs the
        kubeconfig).

        Raises:
            FileWriteError: If a file cannot be created or written; files
                already written for this set are removed first.
        """
        credentials = TransientCredentialSet()
        try:
            credentials.kubeconfig = self._write_one(kubeconfig, KUBECONFIG_NAMING)
            if private_key is not None:
                credentials.private_key = self._write_one(private_key, PRIVATE_KEY_NAMING)
            if certificate is not None:
                credentials.certificate = self._write_one(certificate, CERTIFICATE_NAMING)
        except OSError as e:
            credentials.cleanup()
            raise FileWriteError(f"Failed to write temp files: {e}") from e
        return credentials

    @contextmanager
    def materialize(
        self,
        kubeconfig: Blob,
        private_key: Optional[Blob] = None,
        certificate: Optional[Blob] = None,
    ) -> Iterator[TransientCredentialSet]:
        """Context manager form of write() that always cleans up."""
        credentials = self.write(kubeconfig, private_key, certificate)
        try:
            yield credentials
        finally:
            credentials.cleanup()

    def _write_one(self, blob: Blob, naming) -> Path:
        prefix, suffix = naming
        data = blob if isinstance(blob, bytes) else (blob or "").encode("utf-8")
        # mkstemp creates the file 0600 with a random name
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=self.temp_dir)
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
        except OSError:
            path.unlink(missing_ok=True)
            raise
        return path
