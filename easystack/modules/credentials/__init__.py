"""
Credentials Module - Black Box Interface

Purpose: Stage cluster credentials as files for provisioning scripts
Interface: CredentialMaterializer.write(), CredentialMaterializer.materialize()
Hidden: Temp file naming, permissions, cleanup

Files are created immediately before a provisioning run and removed
immediately after it, whatever the outcome.
"""

from .materializer import CredentialMaterializer, TransientCredentialSet

__all__ = ["CredentialMaterializer", "TransientCredentialSet"]
