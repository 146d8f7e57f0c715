"""
EasyStack - Kubernetes Stack Deployment Nodes

Hosts deploy nodes that install a federated catalogue stack onto a
Kubernetes cluster through external provisioning scripts and then broker
authenticated calls to the deployed service.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- credentials: Transient credential files for provisioning runs
- provisioning: Script invocation and output extraction
- session: Per-node session secret
- auth: Password-grant token broker
- proxy: Authenticated calls to the deployed service
- nodes: Node lifecycle, node types and registry
- api: REST API models
"""

__version__ = "1.0.0"
