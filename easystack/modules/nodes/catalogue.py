"""
Federated-Catalogue node.

Deploys the catalogue stack, keeps the connection metadata printed by the
install script, and proxies service calls with tokens minted from the
client secret of the last deploy.
"""

from typing import List, Optional

import httpx

from ...errors import EasyStackError
from ..api.models import NodeMessage
from ..auth import ServiceEndpoints, TlsSettings, TokenBroker
from ..credentials import TransientCredentialSet
from ..provisioning import ProvisioningOutcome, ResultExtractor
from ..proxy import ServiceProxy
from .base import DeployNode


class FederatedCatalogueNode(DeployNode):
    type_name = "Federated-Catalogue"
    scripts_subdir = "catalogue"
    supports_service_calls = True

    def __init__(self, *args, extractor: Optional[ResultExtractor] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.extractor = extractor or ResultExtractor()
        self.endpoints = ServiceEndpoints(
            domain=self.config.domain_address,
            instance=self.config.instance_name,
        )
        tls = TlsSettings(
            insecure_skip_verify=self.config.insecure_skip_tls_verify,
            ca_cert_path=self.config.ca_cert_path,
        )
        self.broker = TokenBroker(
            endpoints=self.endpoints,
            session=self.session,
            admin_user=self.config.admin_user,
            admin_pass=self.config.admin_pass,
            client_id=self.config.client_id,
            default_user=self.config.new_user,
            default_pass=self.config.new_pass,
            tls=tls,
            timeout=self.http_timeout,
            transport=self.transport,
        )
        self.proxy = ServiceProxy(
            self.endpoints.service_base_url,
            tls=tls,
            timeout=self.http_timeout,
            transport=self.transport,
        )

    def install_args(self, credentials: TransientCredentialSet) -> List[str]:
        cfg = self.config
        return [
            str(credentials.kubeconfig),
            str(credentials.private_key),
            str(credentials.certificate),
            cfg.domain_address,
            cfg.instance_name,
            cfg.admin_user,
            cfg.admin_pass,
            cfg.new_user or "",
            cfg.new_pass or "",
        ]

    def uninstall_args(self, credentials: TransientCredentialSet) -> List[str]:
        return [str(credentials.kubeconfig), self.config.instance_name]

    def on_deployed(self, outcome: ProvisioningOutcome, msg: NodeMessage) -> NodeMessage:
        result = self.extractor.extract(outcome.stdout)
        self.result = result
        self.session.set(result.client_secret)
        self.log(f"Deployment result: {result.masked()}")
        return msg.model_copy(update={"payload": result.to_payload()})

    async def service_call(self, msg: NodeMessage) -> NodeMessage:
        """
        Mint an API token and forward the message to the catalogue service.

        Raises:
            MissingSecretError: No deploy has produced a secret and the
                message carries none
            AuthError: The token endpoint failed
            httpx.TransportError: The service could not be reached
        """
        try:
            token = await self.broker.get_api_token(msg.client_secret, msg.username, msg.password)
            response = await self.proxy.call(token, msg.topic, msg.method, msg.payload)
        except (EasyStackError, httpx.HTTPError) as e:
            self.error(str(e))
            raise
        return msg.model_copy(update={"fc_response": response.to_dict()})
