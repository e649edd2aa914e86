"""
deploychain.integrations.executor.mock - Mock Stage Executor for Testing
==========================================================================

A stage executor that never touches git or a build tool. Trees are held in
memory as ``{relative path: file content}`` dicts and compilation returns a
configured artifact mapping.

Features:
    - **Configurable trees**: register a tree per (source, revision), or use
      the default one for every fetch.
    - **Configurable artifacts**: the mapping compile() returns, in order.
    - **Call History**: every stage call is recorded for test assertions.
    - **Error Simulation**: make any single stage fail.

Usage:
    >>> executor = MockStageExecutor(
    ...     files={"contracts/Token.sol": "contract Token {}"},
    ...     artifacts={"Token": BuildArtifact(name="Token", bytecode="0x60")},
    ... )
    >>> tree = await executor.fetch_tree("repo", "main")
    >>> await executor.classify(tree)
    True
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from deploychain.core.config import ExecutorConfig
from deploychain.core.enums import PipelineStage
from deploychain.core.exceptions import CompilationError, SourceFetchError
from deploychain.core.models import BuildArtifact
from deploychain.integrations.executor.base import SourceTree, StageExecutor


logger = structlog.get_logger()


class InMemorySourceTree(SourceTree):
    """A source tree held as a dict of relative file paths to contents.

    Directories exist implicitly: ``{"contracts/A.sol": ...}`` makes
    ``contracts`` a directory with one entry. A value of None marks a file
    that exists but cannot be read.
    """

    def __init__(
        self,
        files: Optional[dict[str, Optional[str]]] = None,
        source_location: str = "memory://tree",
        revision: str = "main",
    ) -> None:
        super().__init__(source_location, revision)
        self.files: dict[str, Optional[str]] = dict(files or {})

    async def list_entries(self, path: str) -> list[str]:
        prefix = path.strip("/") + "/"
        entries = {
            file_path[len(prefix):].split("/", 1)[0]
            for file_path in self.files
            if file_path.startswith(prefix) and len(file_path) > len(prefix)
        }
        return sorted(entries)

    async def read_text(self, path: str) -> str:
        key = path.strip("/")
        if key not in self.files:
            raise FileNotFoundError(path)
        content = self.files[key]
        if content is None:
            raise PermissionError(path)
        return content


class MockStageExecutor(StageExecutor):
    """Stage executor for tests and local development.

    Attributes:
        _files: Default file layout used for every fetched tree.
        _trees: Per-(source, revision) file layouts overriding the default.
        _artifacts: What compile() returns.
        _failures: Stage → error message for simulated failures.
        _call_history: Every stage call, in order.
        _released: Trees passed to release_tree().
    """

    def __init__(
        self,
        config: Optional[ExecutorConfig] = None,
        *,
        files: Optional[dict[str, Optional[str]]] = None,
        artifacts: Optional[dict[str, BuildArtifact]] = None,
    ) -> None:
        super().__init__(config or ExecutorConfig(backend="mock"))

        self._files: dict[str, Optional[str]] = dict(files or {})
        self._trees: dict[tuple[str, str], dict[str, Optional[str]]] = {}
        self._artifacts: dict[str, BuildArtifact] = dict(artifacts or {})
        self._failures: dict[PipelineStage, str] = {}
        self._call_history: list[dict[str, Any]] = []
        self._released: list[SourceTree] = []
        self._logger = logger.bind(component="mock_stage_executor")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """All recorded stage calls (``{"stage": ..., ...}``)."""
        return self._call_history

    def calls_for(self, stage: PipelineStage) -> list[dict[str, Any]]:
        """Recorded calls for one stage."""
        return [call for call in self._call_history if call["stage"] == stage]

    @property
    def released_trees(self) -> list[SourceTree]:
        """Trees that have been released."""
        return self._released

    # =========================================================================
    # Configuration
    # =========================================================================

    def add_tree(
        self,
        source_location: str,
        revision: str,
        files: dict[str, Optional[str]],
    ) -> None:
        """Serve ``files`` when (source_location, revision) is fetched."""
        self._trees[(source_location, revision)] = dict(files)

    def set_artifacts(self, artifacts: dict[str, BuildArtifact]) -> None:
        """Replace the mapping compile() returns."""
        self._artifacts = dict(artifacts)

    def set_should_fail(
        self,
        stage: PipelineStage,
        message: str = "Mock stage executor error",
    ) -> None:
        """Make ``stage`` raise with ``message`` on its next and later calls.

        FETCH raises SourceFetchError, COMPILE raises CompilationError and
        CLASSIFY raises RuntimeError (an executor crash, not a negative answer).
        """
        self._failures[stage] = message

    def clear_failures(self) -> None:
        self._failures.clear()

    # =========================================================================
    # StageExecutor Implementation
    # =========================================================================

    async def fetch_tree(self, source_location: str, revision: str) -> SourceTree:
        self._call_history.append({
            "stage": PipelineStage.FETCH,
            "source_location": source_location,
            "revision": revision,
        })

        if PipelineStage.FETCH in self._failures:
            raise SourceFetchError(self._failures[PipelineStage.FETCH])

        files = self._trees.get((source_location, revision), self._files)
        return InMemorySourceTree(files, source_location, revision)

    async def classify(self, tree: SourceTree) -> bool:
        self._call_history.append({"stage": PipelineStage.CLASSIFY, "tree": tree})

        if PipelineStage.CLASSIFY in self._failures:
            raise RuntimeError(self._failures[PipelineStage.CLASSIFY])

        return await super().classify(tree)

    async def compile(self, tree: SourceTree) -> dict[str, BuildArtifact]:
        self._call_history.append({"stage": PipelineStage.COMPILE, "tree": tree})

        if PipelineStage.COMPILE in self._failures:
            raise CompilationError(self._failures[PipelineStage.COMPILE])

        self._logger.debug("mock_compile_called", artifact_count=len(self._artifacts))
        return dict(self._artifacts)

    async def release_tree(self, tree: SourceTree) -> None:
        self._released.append(tree)
