"""
EasyStack shared data models.

These models define the structure of all data passed between the HTTP
API and the nodes. Field names are snake_case in Python and camelCase on
the wire, matching the keys the flow editor has always produced.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Enums


class NodeState(str, Enum):
    """Lifecycle state of a deploy node."""

    IDLE = "idle"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"
    UNINSTALLING = "uninstalling"
    CLOSED = "closed"


class NodeAction(str, Enum):
    """Provisioning trigger carried by a message."""

    DEPLOY = "deploy"
    UNINSTALL = "uninstall"


# Node configuration


class DeploymentConfig(BaseModel):
    """
    Immutable configuration of one deploy node.

    Credential contents are opaque blobs and are never inspected.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    kubeconfig_content: str = Field(..., description="Kube config file content")
    private_key_content: str = Field(default="", description="TLS private key content")
    certificate_content: str = Field(default="", description="TLS certificate content")
    domain_address: str = Field(..., min_length=1, description="Domain the stack is served on")
    instance_name: str = Field(..., min_length=1, description="Instance path suffix")
    admin_user: str = Field(
        default="",
        validation_alias=AliasChoices("adminUser", "username", "admin_user"),
        description="Administrator username",
    )
    admin_pass: str = Field(
        default="",
        validation_alias=AliasChoices("adminPass", "password", "admin_pass"),
        description="Administrator password",
    )
    client_id: str = Field(default="federated-catalogue", description="Service realm client id")
    new_user: Optional[str] = Field(default=None, description="Default service user")
    new_pass: Optional[str] = Field(default=None, description="Default service user password")
    insecure_skip_tls_verify: bool = Field(
        default=False,
        description="Disable TLS verification for calls to the deployed instance",
    )
    ca_cert_path: Optional[str] = Field(default=None, description="CA bundle for the instance")

    @field_validator("client_id", mode="before")
    @classmethod
    def default_blank_client_id(cls, value: Any) -> Any:
        # editors send "" for blank fields
        if value is None or (isinstance(value, str) and not value.strip()):
            return "federated-catalogue"
        return value


# Messages


class NodeMessage(BaseModel):
    """
    Message delivered to and emitted by a node.

    Unknown keys are kept and passed through to the output message.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    topic: Optional[Any] = Field(default=None, description="Service API path for service calls")
    method: Optional[str] = Field(default=None, description="HTTP method for service calls")
    payload: Any = Field(default=None, description="Request body in, result out")
    action: Optional[NodeAction] = Field(default=None, description="deploy (default) or uninstall")
    client_secret: Optional[str] = Field(default=None, description="Overrides the session secret")
    username: Optional[str] = Field(default=None, description="Overrides the default service user")
    password: Optional[str] = Field(default=None, description="Overrides the default password")
    fc_response: Optional[Dict[str, Any]] = Field(default=None, description="Service call result")
    error: Optional[str] = Field(default=None, description="Error text of a failed deploy")

    @property
    def wants_service_call(self) -> bool:
        return isinstance(self.topic, str) and self.topic.strip() != ""

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# Request / Response Models (API)


class NodeIndicator(BaseModel):
    """Status badge shown for a node in the editor."""

    fill: Optional[str] = None
    shape: Optional[str] = None
    text: Optional[str] = None


class CreateNodeRequest(BaseModel):
    """Request to create a node instance."""

    type: str = Field(..., description="Registered node type name")
    id: Optional[str] = Field(
        None,
        description="Node id; generated when omitted",
        min_length=1,
        max_length=100,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$",
    )
    name: Optional[str] = Field(None, description="Display name")
    config: Dict[str, Any] = Field(..., description="Node configuration")


class NodeResponse(BaseModel):
    """Public view of a node; never includes credentials."""

    id: str
    type: str
    name: Optional[str] = None
    state: NodeState
    indicator: NodeIndicator
    domain: str
    instance: str


class NodeListResponse(BaseModel):
    nodes: List[NodeResponse]
    total: int


class CatalogueInfoResponse(BaseModel):
    """Last known connection metadata of a catalogue node."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    ingress_external_ip: str = ""
    fc_service_url: str = ""
    keycloak_url: str = ""
    client_secret: str = ""
