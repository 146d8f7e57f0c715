"""
Deploy node base class.

A node owns one deployed instance: its configuration, its lifecycle state,
the last extracted connection metadata and the session secret. Subclasses
only describe how their scripts are called and what a deploy produces.

State machine:
    idle -> deploying -> deployed | failed
    deployed | failed -> deploying            (redeploy)
    any -> uninstalling -> idle | failed
    any -> closed                             (close)
"""

import asyncio
import logging
from typing import Any, Awaitable, ClassVar, List, Optional

from ...errors import (
    DeploymentFailure,
    EasyStackError,
    FileWriteError,
    OperationCancelled,
    UninstallFailure,
)
from ..api.models import DeploymentConfig, NodeAction, NodeIndicator, NodeMessage, NodeState
from ..credentials import CredentialMaterializer, TransientCredentialSet
from ..provisioning import DeploymentResult, ProvisioningInvoker, ProvisioningOutcome
from ..session import SessionState


class NodeClosedError(EasyStackError):
    """The node has been closed and accepts no more messages."""


class DeployNode:
    """Base class of all deploy node types."""

    type_name: ClassVar[str] = ""
    scripts_subdir: ClassVar[str] = ""
    supports_service_calls: ClassVar[bool] = False

    def __init__(
        self,
        node_id: str,
        config: DeploymentConfig,
        invoker: ProvisioningInvoker,
        materializer: Optional[CredentialMaterializer] = None,
        name: Optional[str] = None,
        http_timeout: Optional[float] = 30.0,
        transport: Optional[Any] = None,
    ):
        """
        Args:
            node_id: Unique node identifier
            config: Immutable node configuration
            invoker: Runs this node type's scripts
            materializer: Writes credential files (system temp dir by default)
            name: Display name
            http_timeout: Timeout for outbound HTTP calls
            transport: Optional httpx transport for outbound calls (tests)
        """
        self.id = node_id
        self.name = name
        self.config = config
        self.invoker = invoker
        self.materializer = materializer or CredentialMaterializer()
        self.http_timeout = http_timeout
        self.transport = transport

        self.state = NodeState.IDLE
        self.indicator = NodeIndicator()
        self.session = SessionState()
        self.result: Optional[DeploymentResult] = None

        self._lock = asyncio.Lock()
        self._inflight: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self._closing = False
        self._logger = logging.getLogger(f"easystack.nodes.{self.scripts_subdir or 'base'}")

    # ------------------------------------------------------------------
    # Runtime helpers
    # ------------------------------------------------------------------

    def log(self, message: str) -> None:
        self._logger.info(f"[{self.id}] {message}")

    def warn(self, message: str) -> None:
        self._logger.warning(f"[{self.id}] {message}")

    def error(self, message: str) -> None:
        self._logger.error(f"[{self.id}] {message}")

    def status(self, fill: Optional[str] = None, shape: Optional[str] = None, text: Optional[str] = None) -> None:
        """Set the editor badge; no arguments clears it."""
        self.indicator = NodeIndicator(fill=fill, shape=shape, text=text)

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def install_args(self, credentials: TransientCredentialSet) -> List[str]:
        raise NotImplementedError

    def uninstall_args(self, credentials: TransientCredentialSet) -> List[str]:
        raise NotImplementedError

    def sensitive_values(self) -> List[str]:
        """Argument values masked in logged command lines."""
        return [v for v in (self.config.admin_pass, self.config.new_pass) if v]

    def on_deployed(self, outcome: ProvisioningOutcome, msg: NodeMessage) -> NodeMessage:
        """Output message of a successful deploy; passthrough by default."""
        return msg

    async def service_call(self, msg: NodeMessage) -> NodeMessage:
        raise NotImplementedError(f"{self.type_name} does not support service calls")

    # ------------------------------------------------------------------
    # Message handling
    # ------------------------------------------------------------------

    async def handle(self, msg: NodeMessage) -> Optional[NodeMessage]:
        """
        Route one inbound message.

        A non-blank topic is a service call (for node types that support
        them); ``action: uninstall`` removes the instance; anything else
        deploys.
        """
        self._ensure_open()

        if self.supports_service_calls and msg.wants_service_call:
            return await self.service_call(msg)

        if msg.action is NodeAction.UNINSTALL:
            await self.uninstall()
            return msg.model_copy(update={"payload": {"uninstalled": True}})

        return await self.deploy(msg)

    async def deploy(self, msg: NodeMessage) -> NodeMessage:
        """
        Install (or reinstall) the stack.

        A failing script does not raise: the output message carries the
        error text as payload and the node is marked failed.

        Raises:
            FileWriteError: Credentials could not be staged; nothing was run
            NodeClosedError: The node was closed while this deploy waited
        """
        async with self._lock:
            self._ensure_open()
            try:
                credentials = self.materializer.write(
                    self.config.kubeconfig_content,
                    self.config.private_key_content,
                    self.config.certificate_content,
                )
            except FileWriteError as e:
                self.error(str(e))
                self.state = NodeState.FAILED
                self.status(fill="red", shape="ring", text="file error")
                raise

            self.state = NodeState.DEPLOYING
            self.status(fill="blue", shape="dot", text="deploying")
            try:
                outcome = await self._track(
                    self.invoker.install(
                        self.install_args(credentials),
                        credentials=credentials,
                        sensitive=self.sensitive_values(),
                    )
                )
            except DeploymentFailure as e:
                self.error(e.message)
                self.state = NodeState.FAILED
                self.status(fill="red", shape="ring", text="deploy failed")
                return msg.model_copy(update={"payload": e.message, "error": e.message})
            except (OperationCancelled, asyncio.CancelledError):
                self.warn("deploy cancelled")
                self.state = NodeState.FAILED
                self.status(fill="red", shape="ring", text="deploy cancelled")
                raise
            finally:
                credentials.cleanup()

            output = self.on_deployed(outcome, msg)
            self.state = NodeState.DEPLOYED
            self.status(fill="green", shape="dot", text="deployed")
            return output

    async def uninstall(self) -> ProvisioningOutcome:
        """
        Remove the stack; clears metadata and session secret on success.

        Raises:
            FileWriteError: The kubeconfig could not be staged
            UninstallFailure: The uninstall script failed
            NodeClosedError: The node was closed while this uninstall waited
        """
        async with self._lock:
            self._ensure_open()
            return await self._uninstall()

    async def _uninstall(self) -> ProvisioningOutcome:
        # caller holds self._lock
        try:
            credentials = self.materializer.write(self.config.kubeconfig_content)
        except FileWriteError as e:
            self.warn(f"uninstall: failed to write kubeconfig temp file: {e}")
            raise

        self.state = NodeState.UNINSTALLING
        self.status(fill="yellow", shape="dot", text="uninstalling")
        try:
            outcome = await self._track(
                self.invoker.uninstall(self.uninstall_args(credentials), credentials=credentials)
            )
        except (UninstallFailure, OperationCancelled) as e:
            self.error(f"uninstall failed: {e}")
            self.state = NodeState.FAILED
            self.status(fill="red", shape="ring", text="uninstall failed")
            raise
        finally:
            credentials.cleanup()

        self.log(f"uninstall output:\n{outcome.stdout}")
        self.result = None
        self.session.clear()
        self.state = NodeState.IDLE
        self.status()
        return outcome

    async def close(self, removed: bool = False) -> None:
        """
        Shut the node down.

        New messages are refused from the first moment. An in-flight run is
        cancelled and allowed to unwind (removing its credential files)
        before the node is marked closed; operations queued behind it fail
        with NodeClosedError.

        Args:
            removed: The node is being deleted, so its instance is
                uninstalled first. Uninstall errors are logged and the node
                is closed regardless.
        """
        if self.state is NodeState.CLOSED or self._closing:
            return
        self._closing = True
        self.cancel()
        async with self._lock:
            if removed:
                try:
                    await self._uninstall()
                except EasyStackError as e:
                    self.warn(f"closing after failed uninstall: {e}")
            self.state = NodeState.CLOSED
            self.status()

    def cancel(self) -> bool:
        """Cancel the in-flight provisioning run, if any."""
        if self._inflight is not None and not self._inflight.done():
            self._cancel_requested = True
            self._inflight.cancel()
            return True
        return False

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _ensure_open(self) -> None:
        if self.state is NodeState.CLOSED or self._closing:
            raise NodeClosedError(f"Node {self.id} is closed")

    async def _track(self, operation: Awaitable[ProvisioningOutcome]) -> ProvisioningOutcome:
        task = asyncio.ensure_future(operation)
        self._inflight = task
        try:
            return await task
        except asyncio.CancelledError:
            # only the node's own cancel() becomes an error; outer
            # cancellation of the caller propagates as is
            if self._cancel_requested:
                self._cancel_requested = False
                raise OperationCancelled(f"Provisioning on node {self.id} was cancelled")
            raise
        finally:
            self._inflight = None

    def info(self) -> dict:
        """Last known connection metadata, empty strings when unset."""
        return (self.result or DeploymentResult()).to_status()
