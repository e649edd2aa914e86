"""
DeployChain - Deployment Pipeline Orchestrator
================================================

DeployChain builds a repository and publishes its compiled artifacts to a
target environment, tracking every request as a deployment record:

    fetch source  →  classify project  →  compile artifacts  →  publish
                                                                   │
    pending ──→ building ──→ deployed | failed  ←──────────────────┘

Architecture Layers (top to bottom):
    1. Orchestration Layer  - PipelineOrchestrator, PublishReconciler, HealthProbe
    2. Infrastructure Layer - Deployment record store
    3. Integration Layer    - Stage executors, publishers

Quick Start:
    >>> from deploychain import DeployChain
    >>> async with DeployChain() as chain:
    ...     deployment_id = await chain.submit(repo_url, "main", "demo")
    ...     record = await chain.wait_for(deployment_id)
"""

# =============================================================================
# Package Version
# =============================================================================
# Single source of truth for the package version, also read by pyproject.toml:
#   from deploychain import __version__
# =============================================================================
__version__ = "0.1.0"

from deploychain.facade import DeployChain

__all__ = ["DeployChain", "__version__"]
