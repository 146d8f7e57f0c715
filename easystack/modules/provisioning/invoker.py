"""
Provisioning invoker.

Runs the external install/uninstall scripts as child processes. Arguments
are handed to the child as separate argv entries (no shell), so argument
values can never be interpreted as shell syntax.
"""

import asyncio
import logging
import shlex
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from ...errors import DeploymentFailure, ProvisioningError, UninstallFailure
from ..credentials import TransientCredentialSet

logger = logging.getLogger("easystack.provisioning")

MASK = "******"


class OperationKind(str, Enum):
    """Provisioning operation."""

    INSTALL = "install"
    UNINSTALL = "uninstall"


DEFAULT_SCRIPTS: Dict[OperationKind, str] = {
    OperationKind.INSTALL: "deploy.sh",
    OperationKind.UNINSTALL: "uninstall.sh",
}

_FAILURES = {
    OperationKind.INSTALL: DeploymentFailure,
    OperationKind.UNINSTALL: UninstallFailure,
}


@dataclass
class ProvisioningOutcome:
    """Captured result of one script run."""

    kind: OperationKind
    returncode: int
    stdout: str
    stderr: str
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProvisioningInvoker:
    """Runs provisioning scripts for one node type."""

    def __init__(
        self,
        scripts_dir: Union[str, Path],
        interpreter: str = "bash",
        timeout: Optional[float] = None,
        scripts: Optional[Dict[OperationKind, str]] = None,
    ):
        """
        Args:
            scripts_dir: Directory holding the scripts; default working directory
            interpreter: Program the script path is passed to
            timeout: Seconds before a run is killed (None waits forever)
            scripts: Script file name per operation kind
        """
        self.scripts_dir = Path(scripts_dir)
        self.interpreter = interpreter
        self.timeout = timeout
        self.scripts = dict(DEFAULT_SCRIPTS)
        if scripts:
            self.scripts.update(scripts)

    def script_path(self, kind: OperationKind) -> Path:
        return self.scripts_dir / self.scripts[kind]

    def build_command(self, kind: OperationKind, args: Sequence[str]) -> List[str]:
        """argv for a run: interpreter, script path, then the positional args."""
        return [self.interpreter, str(self.script_path(kind))] + [str(a) for a in args]

    @staticmethod
    def describe_command(command: Sequence[str], sensitive: Iterable[str] = ()) -> str:
        """Shell-quoted rendering of a command for logs, with secrets masked."""
        hidden = {s for s in sensitive if s}
        return shlex.join(MASK if part in hidden else part for part in command)

    async def run(
        self,
        kind: OperationKind,
        args: Sequence[str],
        credentials: Optional[TransientCredentialSet] = None,
        cwd: Optional[Union[str, Path]] = None,
        sensitive: Iterable[str] = (),
    ) -> ProvisioningOutcome:
        """
        Run one provisioning operation.

        The credential set is cleaned up on every exit path. On timeout or
        cancellation the child process is killed.

        Raises:
            DeploymentFailure: install exited non-zero or timed out
            UninstallFailure: uninstall exited non-zero or timed out
            asyncio.CancelledError: the awaiting task was cancelled
        """
        failure = _FAILURES[kind]
        command = self.build_command(kind, args)
        workdir = str(cwd or self.scripts_dir)
        script = self.scripts[kind]
        logger.info(f"Executing: {self.describe_command(command, sensitive)}")

        start = time.monotonic()
        try:
            try:
                process = await asyncio.create_subprocess_exec(
                    *command,
                    cwd=workdir,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise failure(f"Failed to start {script}: {e}") from e

            try:
                stdout_b, stderr_b = await asyncio.wait_for(
                    process.communicate(), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                await self._kill(process)
                raise failure(f"{script} timed out after {self.timeout} seconds")
            except asyncio.CancelledError:
                logger.warning(f"{script} cancelled; killing process {process.pid}")
                await self._kill(process)
                raise
        finally:
            if credentials is not None:
                credentials.cleanup()

        outcome = ProvisioningOutcome(
            kind=kind,
            returncode=process.returncode,
            stdout=stdout_b.decode("utf-8", errors="replace"),
            stderr=stderr_b.decode("utf-8", errors="replace"),
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        logger.debug(
            f"{script} finished with status {outcome.returncode} in {outcome.duration_ms}ms"
        )

        if not outcome.ok:
            message = outcome.stderr or f"{script} exited with status {outcome.returncode}"
            raise failure(
                message,
                returncode=outcome.returncode,
                stdout=outcome.stdout,
                stderr=outcome.stderr,
            )
        return outcome

    async def install(self, args: Sequence[str], **kwargs) -> ProvisioningOutcome:
        return await self.run(OperationKind.INSTALL, args, **kwargs)

    async def uninstall(self, args: Sequence[str], **kwargs) -> ProvisioningOutcome:
        return await self.run(OperationKind.UNINSTALL, args, **kwargs)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()


__all__ = [
    "OperationKind",
    "ProvisioningError",
    "ProvisioningInvoker",
    "ProvisioningOutcome",
]
