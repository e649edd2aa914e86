"""
deploychain.integrations.executor.base - Abstract Stage Executor Interface
============================================================================

This module defines the contract every stage executor implements. The
orchestrator never clones, inspects, or builds source itself; it calls the
executor through this interface.

Architecture Context:
    ┌───────────────┐  fetch_tree()   ┌───────────────────┐
    │  Pipeline      │ ──────────────→ │  StageExecutor     │
    │  Orchestrator  │  classify()     │  (abstract)        │
    │                │ ──────────────→ │                    │
    │                │  compile()      │                    │
    │                │ ←── artifacts ─ │                    │
    └───────────────┘                 └─────────┬─────────┘
                                                │
                                     ┌──────────┴──────────┐
                                ┌────▼───┐          ┌──────▼──────┐
                                │  Mock  │          │  Local      │
                                │        │          │ (git + npx) │
                                └────────┘          └─────────────┘

Classification:
    A tree is a recognized project if EITHER
        - the artifacts-source directory (``contracts``) has at least one entry, OR
        - the build-tool config file (``hardhat.config.js``) is present and readable.
    Either signal alone is enough. This check is cheap and always runs before
    compilation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from deploychain.core.config import ExecutorConfig
from deploychain.core.models import BuildArtifact


# =============================================================================
# Source Tree Handle
# =============================================================================
class SourceTree(ABC):
    """Handle to a fetched source snapshot.

    Paths passed to the methods are relative to the tree root and use
    forward slashes.

    Attributes:
        source_location: Where the tree was fetched from.
        revision: The revision it was fetched at.
    """

    def __init__(self, source_location: str, revision: str) -> None:
        self.source_location = source_location
        self.revision = revision

    @abstractmethod
    async def list_entries(self, path: str) -> list[str]:
        """List the names directly under directory ``path``.

        Returns:
            Entry names, sorted. A missing directory yields an empty list.
        """

    @abstractmethod
    async def read_text(self, path: str) -> str:
        """Read file ``path`` as text.

        Raises:
            OSError: If the file is missing or cannot be read.
        """


async def is_recognized_project(
    tree: SourceTree,
    artifacts_source_dir: str,
    build_config_file: str,
) -> bool:
    """Decide whether ``tree`` is a project this pipeline can build.

    Args:
        tree: The fetched source tree.
        artifacts_source_dir: Directory that qualifies the tree when non-empty.
        build_config_file: File that qualifies the tree when readable.

    Returns:
        True if either signal is present.
    """
    if await tree.list_entries(artifacts_source_dir):
        return True

    try:
        await tree.read_text(build_config_file)
    except OSError:
        return False
    return True


# =============================================================================
# Abstract Stage Executor
# =============================================================================
class StageExecutor(ABC):
    """Abstract base class for stage executors.

    Subclasses implement fetch_tree() and compile(). classify() has a default
    implementation built on is_recognized_project() and the configured names;
    release_tree() defaults to a no-op.

    Attributes:
        _config: Executor configuration.
    """

    def __init__(self, config: ExecutorConfig) -> None:
        self._config = config

    @property
    def config(self) -> ExecutorConfig:
        """Access the executor configuration."""
        return self._config

    @abstractmethod
    async def fetch_tree(self, source_location: str, revision: str) -> SourceTree:
        """Fetch a snapshot of ``source_location`` at ``revision``.

        Raises:
            SourceFetchError: If the snapshot cannot be produced.
        """

    async def classify(self, tree: SourceTree) -> bool:
        """Check whether the tree is a recognized project."""
        return await is_recognized_project(
            tree,
            self._config.artifacts_source_dir,
            self._config.build_config_file,
        )

    @abstractmethod
    async def compile(self, tree: SourceTree) -> dict[str, BuildArtifact]:
        """Compile the tree into named build artifacts.

        Returns:
            Mapping of artifact name → BuildArtifact, in a stable order.

        Raises:
            CompilationError: If the build fails or produces nothing.
        """

    async def release_tree(self, tree: SourceTree) -> None:
        """Free any resources held by ``tree``. Called once per run."""
