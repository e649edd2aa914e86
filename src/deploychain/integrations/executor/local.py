"""
deploychain.integrations.executor.local - Local Git + Build Tool Executor
===========================================================================

A StageExecutor that works on the local machine:

    1. fetch_tree():  ``git clone --depth 1 --branch <revision>`` into a
                      fresh temporary directory
    2. classify():    inherited predicate over the cloned directory
    3. compile():     runs the configured build commands inside the clone
                      (``npm install``, ``npx hardhat compile``) and reads the
                      Hardhat artifact layout:

                          artifacts/contracts/
                              Token.sol/
                                  Token.json        ← artifact
                                  Token.dbg.json    ← skipped
    4. release_tree(): removes the clone

All commands run through ``asyncio.create_subprocess_exec`` so a run never
blocks the event loop.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Type

import structlog

from deploychain.core.config import ExecutorConfig
from deploychain.core.exceptions import CompilationError, SourceFetchError, StageError
from deploychain.core.models import BuildArtifact
from deploychain.integrations.executor.base import SourceTree, StageExecutor


logger = structlog.get_logger()

DEBUG_ARTIFACT_SUFFIX = ".dbg.json"
_STDERR_TAIL_CHARS = 500


class LocalSourceTree(SourceTree):
    """A source tree checked out in a local directory."""

    def __init__(self, root: Path, source_location: str, revision: str) -> None:
        super().__init__(source_location, revision)
        self.root = root

    def _resolve(self, path: str) -> Path:
        resolved = (self.root / path).resolve()
        if resolved != self.root.resolve() and self.root.resolve() not in resolved.parents:
            raise PermissionError(f"Path escapes the source tree: {path}")
        return resolved

    async def list_entries(self, path: str) -> list[str]:
        """Sorted entry names. A path outside the tree lists as empty."""
        try:
            directory = self._resolve(path)
        except PermissionError:
            return []
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir())

    async def read_text(self, path: str) -> str:
        """Read a file inside the tree.

        Raises:
            PermissionError: If ``path`` escapes the tree. Unlike
                list_entries(), which treats such a path as empty, this
                propagates; it is an OSError, so classification reads it as
                "config file not readable".
            OSError: If the file is missing or unreadable.
        """
        return self._resolve(path).read_text(encoding="utf-8", errors="replace")


class LocalStageExecutor(StageExecutor):
    """Stage executor backed by a local ``git`` and the project's build tool.

    Example:
        >>> executor = LocalStageExecutor(ExecutorConfig())
        >>> tree = await executor.fetch_tree("https://github.com/acme/token.git", "main")
        >>> if await executor.classify(tree):
        ...     artifacts = await executor.compile(tree)
        >>> await executor.release_tree(tree)
    """

    def __init__(self, config: ExecutorConfig) -> None:
        super().__init__(config)
        self._logger = logger.bind(component="local_stage_executor")

    # =========================================================================
    # StageExecutor Implementation
    # =========================================================================

    async def fetch_tree(self, source_location: str, revision: str) -> LocalSourceTree:
        workspace = Path(
            tempfile.mkdtemp(prefix="deploychain-", dir=self._config.workspace_dir)
        )
        checkout = workspace / "src"

        self._logger.info(
            "source_fetch_starting",
            source_location=source_location,
            revision=revision,
            checkout=str(checkout),
        )

        try:
            await self._run_command(
                [
                    self._config.git_binary,
                    "clone",
                    "--depth",
                    "1",
                    "--branch",
                    revision,
                    source_location,
                    str(checkout),
                ],
                cwd=workspace,
                error_cls=SourceFetchError,
            )
        except SourceFetchError:
            shutil.rmtree(workspace, ignore_errors=True)
            raise

        return LocalSourceTree(checkout, source_location, revision)

    async def compile(self, tree: SourceTree) -> dict[str, BuildArtifact]:
        root = self._root_of(tree)

        for command in self._config.build_commands:
            self._logger.info("build_command_starting", command=command, cwd=str(root))
            await self._run_command(command, cwd=root, error_cls=CompilationError)

        artifacts = self._collect_artifacts(root)
        if not artifacts:
            raise CompilationError(
                message=(
                    f"no compiled artifacts found in {self._config.compiled_artifacts_dir}"
                ),
                error_code="NO_ARTIFACTS",
                details={"artifacts_dir": self._config.compiled_artifacts_dir},
            )

        self._logger.info(
            "compilation_completed",
            artifact_count=len(artifacts),
            artifacts=list(artifacts),
        )
        return artifacts

    async def release_tree(self, tree: SourceTree) -> None:
        root = self._root_of(tree)
        shutil.rmtree(root.parent, ignore_errors=True)
        self._logger.debug("source_tree_released", root=str(root))

    # =========================================================================
    # Artifact Parsing
    # =========================================================================

    def _collect_artifacts(self, root: Path) -> dict[str, BuildArtifact]:
        """Read every contract artifact below the compiled-artifacts directory.

        Unreadable or malformed files are logged and skipped. Directories and
        files are visited in sorted order so the result order is stable.
        """
        artifacts_root = root / self._config.compiled_artifacts_dir
        if not artifacts_root.is_dir():
            return {}

        artifacts: dict[str, BuildArtifact] = {}
        for unit_dir in sorted(artifacts_root.iterdir()):
            if not unit_dir.is_dir() or not unit_dir.name.endswith(".sol"):
                continue

            for artifact_file in sorted(unit_dir.iterdir()):
                name = artifact_file.name
                if not name.endswith(".json") or name.endswith(DEBUG_ARTIFACT_SUFFIX):
                    continue

                artifact = self._parse_artifact(root, artifact_file)
                if artifact is not None:
                    artifacts[artifact.name] = artifact

        return artifacts

    def _parse_artifact(self, root: Path, artifact_file: Path) -> Optional[BuildArtifact]:
        try:
            data = json.loads(artifact_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self._logger.warning(
                "artifact_unreadable",
                file=str(artifact_file),
                error=str(exc),
            )
            return None

        if not isinstance(data, dict):
            self._logger.warning("artifact_malformed", file=str(artifact_file))
            return None

        source_code = None
        source_name = data.get("sourceName")
        if isinstance(source_name, str):
            source_path = root / source_name
            if source_path.is_file():
                source_code = source_path.read_text(encoding="utf-8", errors="replace")

        return BuildArtifact(
            name=data.get("contractName") or artifact_file.stem,
            bytecode=data.get("bytecode") or "",
            abi=json.dumps(data.get("abi", [])),
            source_code=source_code,
            compiler_version=self._config.compiler_version,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _root_of(tree: SourceTree) -> Path:
        if not isinstance(tree, LocalSourceTree):
            raise TypeError(
                f"LocalStageExecutor cannot handle {type(tree).__name__}"
            )
        return tree.root

    async def _run_command(
        self,
        argv: list[str],
        cwd: Path,
        error_cls: Type[StageError],
    ) -> str:
        """Run one command to completion and return its stdout.

        Raises:
            error_cls: If the command cannot start, times out, or exits non-zero.
        """
        command_line = " ".join(argv)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise error_cls(
                message=f"could not start `{command_line}`: {exc}",
                details={"command": argv},
            ) from exc

        timeout = self._config.command_timeout_seconds
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise error_cls(
                message=f"`{command_line}` timed out after {timeout:g}s",
                details={"command": argv, "timeout_seconds": timeout},
            ) from exc

        if process.returncode != 0:
            tail = stderr.decode(errors="replace").strip()[-_STDERR_TAIL_CHARS:]
            raise error_cls(
                message=f"`{command_line}` exited with status {process.returncode}: {tail}",
                details={"command": argv, "returncode": process.returncode},
            )

        return stdout.decode(errors="replace")
