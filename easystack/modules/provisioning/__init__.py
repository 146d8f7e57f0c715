"""
Provisioning Module - Black Box Interface

Purpose: Install and remove the stack through external scripts
Interface: ProvisioningInvoker.run()/install()/uninstall(), ResultExtractor.extract()
Hidden: Process management, argv construction, output decoding

The scripts are an opaque contract: positional arguments in, labeled
lines on stdout, non-zero exit status on failure.
"""

from .extractor import DEFAULT_PATTERNS, DeploymentResult, FieldPattern, ResultExtractor
from .invoker import OperationKind, ProvisioningInvoker, ProvisioningOutcome

__all__ = [
    "DEFAULT_PATTERNS",
    "DeploymentResult",
    "FieldPattern",
    "OperationKind",
    "ProvisioningInvoker",
    "ProvisioningOutcome",
    "ResultExtractor",
]
