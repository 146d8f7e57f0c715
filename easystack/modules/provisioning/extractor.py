"""
Result extractor for provisioning script output.

The install script prints its connection details as labeled lines mixed
with free-form diagnostics. Extraction is pattern matching, not parsing:
each line is tried against an ordered table and the first pattern that
matches assigns its captured text to a result field.
"""

import re
from dataclasses import dataclass, fields
from typing import ClassVar, Dict, Optional, Pattern, Sequence


@dataclass
class DeploymentResult:
    """Connection metadata of a deployed instance; unseen fields stay None."""

    ingress_external_ip: Optional[str] = None
    fc_service_url: Optional[str] = None
    keycloak_url: Optional[str] = None
    client_secret: Optional[str] = None

    WIRE_NAMES: ClassVar[Dict[str, str]] = {
        "ingress_external_ip": "ingressExternalIp",
        "fc_service_url": "fcServiceUrl",
        "keycloak_url": "keycloakUrl",
        "client_secret": "clientSecret",
    }

    def to_payload(self) -> Dict[str, str]:
        """camelCase dict holding only the fields that were extracted."""
        return {
            self.WIRE_NAMES[f.name]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def to_status(self) -> Dict[str, str]:
        """camelCase dict with every field, unset ones as empty strings."""
        return {
            self.WIRE_NAMES[f.name]: getattr(self, f.name) or ""
            for f in fields(self)
        }

    def masked(self) -> Dict[str, str]:
        """Payload form safe for logs."""
        payload = self.to_payload()
        if "clientSecret" in payload:
            payload["clientSecret"] = "******"
        return payload


@dataclass(frozen=True)
class FieldPattern:
    """One labeled marker: lines matching ``pattern`` set ``field``."""

    label: str
    pattern: Pattern[str]
    field: str


DEFAULT_PATTERNS: Sequence[FieldPattern] = (
    FieldPattern("ingress external ip", re.compile(r"^🔹 ingress External-IP: (.+)$"), "ingress_external_ip"),
    FieldPattern("fc-service url", re.compile(r"^🔹 fc-service URL:\s+(.+)$"), "fc_service_url"),
    FieldPattern("keycloak url", re.compile(r"^🔹 Keycloak URL:\s+(.+)$"), "keycloak_url"),
    FieldPattern("client secret", re.compile(r"^🔹 Client Secret:\s+(.+)$"), "client_secret"),
)


class ResultExtractor:
    """Extracts a DeploymentResult from install script stdout."""

    def __init__(self, patterns: Sequence[FieldPattern] = DEFAULT_PATTERNS):
        known = {f.name for f in fields(DeploymentResult)}
        for p in patterns:
            if p.field not in known:
                raise ValueError(f"Unknown result field for pattern '{p.label}': {p.field}")
        self.patterns = tuple(patterns)

    def extract(self, stdout: str) -> DeploymentResult:
        result = DeploymentResult()
        for line in re.split(r"\r?\n", stdout or ""):
            for p in self.patterns:
                match = p.pattern.match(line)
                if match:
                    # a repeated marker overwrites the earlier value
                    setattr(result, p.field, match.group(1))
                    break
        return result
