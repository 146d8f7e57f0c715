"""Orchestration Engine node: install and uninstall only."""

from typing import List

from ..credentials import TransientCredentialSet
from .base import DeployNode


class OrchestrationEngineNode(DeployNode):
    type_name = "Orchestration Engine"
    scripts_subdir = "orce"

    def install_args(self, credentials: TransientCredentialSet) -> List[str]:
        cfg = self.config
        return [
            cfg.instance_name,
            str(credentials.kubeconfig),
            cfg.domain_address,
            str(credentials.certificate),
            str(credentials.private_key),
            cfg.admin_user,
            cfg.admin_pass,
        ]

    def uninstall_args(self, credentials: TransientCredentialSet) -> List[str]:
        return [self.config.instance_name, str(credentials.kubeconfig)]
