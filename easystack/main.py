#!/usr/bin/env python3
"""
EasyStack - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the node registry (and any nodes from the flows file)
3. Runs the API server

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
import secrets
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from easystack import __version__
from easystack.config.provider import ConfigProvider, EnvConfigProvider
from easystack.errors import (
    AuthError,
    FileWriteError,
    MissingSecretError,
    OperationCancelled,
    UninstallFailure,
)
from easystack.logging_config import get_logging_config
from easystack.modules.api import (
    CatalogueInfoResponse,
    CreateNodeRequest,
    NodeListResponse,
    NodeMessage,
    NodeResponse,
)
from easystack.modules.config import get_config
from easystack.modules.nodes import (
    DeployNode,
    FederatedCatalogueNode,
    NodeClosedError,
    NodeConflictError,
    NodeRegistry,
    UnknownNodeTypeError,
    apply_flows,
    build_registry,
    load_flows,
)

config = get_config()

log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger("easystack.api")


def _node_response(node: DeployNode) -> NodeResponse:
    return NodeResponse(
        id=node.id,
        type=node.type_name,
        name=node.name,
        state=node.state,
        indicator=node.indicator,
        domain=node.config.domain_address,
        instance=node.config.instance_name,
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    registry: Optional[NodeRegistry] = None,
    flows_file: Optional[str] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config_provider: Typed configuration (environment by default)
        registry: Prebuilt registry; built from configuration when None
        flows_file: YAML flows file loaded at startup
    """
    config_provider = config_provider or EnvConfigProvider()
    api_config = config_provider.get_api_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting EasyStack API...")
        if app.state.registry is None:
            app.state.registry = build_registry(
                config_provider.get_provisioning_config(),
                config_provider.get_http_config(),
            )
        if flows_file:
            apply_flows(app.state.registry, load_flows(flows_file))
        logger.info(f"EasyStack API started with {len(app.state.registry)} node(s)")

        yield

        logger.info("Shutting down EasyStack API...")
        await app.state.registry.close_all()
        logger.info("EasyStack API shutdown complete")

    app = FastAPI(
        title="EasyStack API",
        description="EasyStack - Kubernetes stack deployment nodes",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registry = registry

    # Dependency injection helpers

    async def verify_api_key(
        x_api_key: Optional[str] = Header(None, description="API key for authentication")
    ) -> None:
        """Require a configured API key when any are configured."""
        if not api_config.require_api_key:
            return
        if not x_api_key or not any(
            secrets.compare_digest(x_api_key, key) for key in api_config.api_keys
        ):
            raise HTTPException(401, "Invalid API key")

    def get_registry(request: Request) -> NodeRegistry:
        registry = request.app.state.registry
        if registry is None:
            raise HTTPException(503, "Service not initialized")
        return registry

    def get_node(node_id: str, registry: NodeRegistry = Depends(get_registry)) -> DeployNode:
        node = registry.get(node_id)
        if node is None:
            raise HTTPException(404, "Node not found")
        return node

    # Node endpoints

    @app.get("/nodes", response_model=NodeListResponse, dependencies=[Depends(verify_api_key)])
    async def list_nodes(registry: NodeRegistry = Depends(get_registry)):
        nodes = [_node_response(n) for n in registry.list()]
        return NodeListResponse(nodes=nodes, total=len(nodes))

    @app.post(
        "/nodes",
        response_model=NodeResponse,
        status_code=201,
        dependencies=[Depends(verify_api_key)],
    )
    async def create_node(request: CreateNodeRequest, registry: NodeRegistry = Depends(get_registry)):
        """
        Create a node instance.

        Returns:
            201: Node created
            400: Unknown type or invalid configuration
            409: Node id already in use
        """
        node = registry.create(request.type, request.config, node_id=request.id, name=request.name)
        return _node_response(node)

    @app.get("/nodes/{node_id}", response_model=NodeResponse, dependencies=[Depends(verify_api_key)])
    async def get_node_detail(node: DeployNode = Depends(get_node)):
        return _node_response(node)

    @app.post("/nodes/{node_id}/input", dependencies=[Depends(verify_api_key)])
    async def node_input(message: NodeMessage, node: DeployNode = Depends(get_node)):
        """
        Deliver a message to a node.

        Returns:
            200: Output message
            204: The node produced no output
            502: Deploy failed; body is the output message with the error
        """
        output = await node.handle(message)
        if output is None:
            return Response(status_code=204)
        status_code = 502 if output.error else 200
        return JSONResponse(status_code=status_code, content=output.to_wire())

    @app.delete("/nodes/{node_id}", status_code=204, dependencies=[Depends(verify_api_key)])
    async def delete_node(
        node_id: str,
        removed: bool = Query(True, description="Uninstall the instance before closing"),
        registry: NodeRegistry = Depends(get_registry),
    ):
        if not await registry.remove(node_id, removed=removed):
            raise HTTPException(404, "Node not found")
        return Response(status_code=204)

    # Status query

    @app.get(
        "/federated-catalogue/info/{node_id}",
        response_model=CatalogueInfoResponse,
        response_model_by_alias=True,
        dependencies=[Depends(verify_api_key)],
    )
    async def catalogue_info(node_id: str, registry: NodeRegistry = Depends(get_registry)):
        """
        Last known connection metadata of a catalogue node.

        Returns:
            200: Metadata, empty strings for unset fields
            404: Node not found
        """
        node = registry.get(node_id)
        if not isinstance(node, FederatedCatalogueNode):
            return JSONResponse(status_code=404, content={"error": "Node not found"})
        return CatalogueInfoResponse.model_validate(node.info())

    @app.get("/health")
    async def health(request: Request):
        registry = request.app.state.registry
        if registry is None:
            return JSONResponse(status_code=503, content={"status": "unhealthy"})
        return {"status": "healthy", "nodes": len(registry), "version": __version__}

    # Error handlers

    @app.exception_handler(FileWriteError)
    async def file_write_error_handler(request, exc):
        return _error(500, exc)

    @app.exception_handler(UninstallFailure)
    async def uninstall_failure_handler(request, exc):
        return _error(502, exc)

    @app.exception_handler(MissingSecretError)
    async def missing_secret_handler(request, exc):
        return _error(409, exc)

    @app.exception_handler(AuthError)
    async def auth_error_handler(request, exc):
        return _error(502, exc)

    @app.exception_handler(httpx.TransportError)
    async def transport_error_handler(request, exc):
        logger.error(f"Service call transport error: {exc!r}")
        return JSONResponse(
            status_code=504,
            content={"error": str(exc) or exc.__class__.__name__},
        )

    @app.exception_handler(NodeClosedError)
    async def node_closed_handler(request, exc):
        return _error(409, exc)

    @app.exception_handler(OperationCancelled)
    async def cancelled_handler(request, exc):
        return _error(409, exc)

    @app.exception_handler(NodeConflictError)
    async def conflict_handler(request, exc):
        return _error(409, exc)

    @app.exception_handler(UnknownNodeTypeError)
    async def unknown_type_handler(request, exc):
        return _error(400, exc)

    @app.exception_handler(ValueError)
    async def validation_error_handler(request, exc):
        """Handle validation errors."""
        logger.error(f"Validation error: {exc}")
        return _error(400, exc)

    return app


app = create_app(flows_file=config.get("flows_file"))


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "easystack.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    run()
