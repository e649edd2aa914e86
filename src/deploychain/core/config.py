"""
deploychain.core.config - Configuration Management
====================================================

This module provides the configuration system for DeployChain. Configuration
can be loaded from multiple sources with the following priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with DEPLOYCHAIN_)
    3. YAML configuration file (deploychain.yaml)
    4. Default values defined in the models below

Architecture Context:
    Configuration flows DOWN through the system. The top-level DeployChainConfig
    is created once and handed to each adapter at construction time. No
    business logic reads process environment on its own:

        DeployChainConfig
            ├── ExecutorConfig   → StageExecutor (clone, classify, compile)
            ├── PublisherConfig  → Publisher (target environment API)
            └── (other settings) → PipelineOrchestrator

Usage:
    # Load from environment variables:
    config = DeployChainConfig()

    # Load from YAML file:
    config = load_config("deploychain.yaml")

    # Explicit overrides:
    config = DeployChainConfig(log_level="DEBUG", max_concurrent_runs=8)

Environment Variables:
    DEPLOYCHAIN_LOG_LEVEL=DEBUG
    DEPLOYCHAIN_MAX_CONCURRENT_RUNS=8
    DEPLOYCHAIN_PUBLISHER__BASE_URL=https://abc.multibaas.com
    DEPLOYCHAIN_PUBLISHER__API_KEY=...
    DEPLOYCHAIN_PUBLISHER__TARGET_ENVIRONMENT=sepolia
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from deploychain.core.enums import DeploymentType
from deploychain.core.exceptions import ConfigurationError


# =============================================================================
# Stage Executor Configuration
# =============================================================================
# Controls how source trees are fetched, classified, and compiled.
# The classification names (artifacts_source_dir, build_config_file) are the
# two signals of the "recognized project" predicate.
# =============================================================================
class ExecutorConfig(BaseModel):
    """Configuration for the stage executor.

    Attributes:
        backend: Which StageExecutor implementation to build ("local" or "mock").
        git_binary: Executable used to clone repositories.
        workspace_dir: Parent directory for cloned trees. None uses the
            system temp directory.
        artifacts_source_dir: Directory whose non-empty listing marks the
            tree as a recognized project.
        build_config_file: Build-tool configuration file whose presence
            also marks the tree as a recognized project.
        build_commands: Commands run, in order, inside the tree to compile it.
        compiled_artifacts_dir: Where the build tool writes its artifacts,
            relative to the tree root.
        compiler_version: Compiler version recorded on every BuildArtifact.
        command_timeout_seconds: Upper bound for any single clone/build command.
    """

    backend: Literal["local", "mock"] = Field(
        default="local",
        description="Stage executor implementation: 'local' or 'mock'",
    )
    git_binary: str = Field(
        default="git",
        description="Git executable used for cloning",
    )
    workspace_dir: Optional[str] = Field(
        default=None,
        description="Parent directory for cloned trees (None = system temp dir)",
    )
    artifacts_source_dir: str = Field(
        default="contracts",
        description="Source directory that marks a recognized project when non-empty",
    )
    build_config_file: str = Field(
        default="hardhat.config.js",
        description="Build-tool config file that marks a recognized project",
    )
    build_commands: list[list[str]] = Field(
        default_factory=lambda: [
            ["npm", "install"],
            ["npx", "hardhat", "compile"],
        ],
        description="Commands run inside the tree to compile it",
    )
    compiled_artifacts_dir: str = Field(
        default="artifacts/contracts",
        description="Build output directory relative to the tree root",
    )
    compiler_version: str = Field(
        default="0.8.19",
        description="Compiler version stamped on produced artifacts",
    )
    command_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Timeout for a single clone or build command",
    )


# =============================================================================
# Publisher Configuration
# =============================================================================
# Controls how compiled artifacts reach the target environment. The default
# backend speaks the MultiBaas REST API.
# =============================================================================
class PublisherConfig(BaseModel):
    """Configuration for the artifact publisher.

    Attributes:
        backend: Which Publisher implementation to build ("multibaas" or "mock").
        base_url: Root URL of the publish API (e.g. https://xyz.multibaas.com).
        api_key: Bearer token for the publish API.
        target_environment: Environment (chain) artifacts are published to.
        deploy_method: Method invoked to create a new instance of an artifact.
        health_chain: Environment queried by the connection probe.
        timeout_seconds: HTTP timeout for publish and probe calls.
    """

    backend: Literal["multibaas", "mock"] = Field(
        default="multibaas",
        description="Publisher implementation: 'multibaas' or 'mock'",
    )
    base_url: str = Field(
        default="http://localhost:8080",
        description="Root URL of the publish API",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the publish API",
    )
    target_environment: str = Field(
        default="sepolia",
        description="Target environment (chain) name",
    )
    deploy_method: str = Field(
        default="constructor",
        description="Method called to publish a new artifact instance",
    )
    health_chain: str = Field(
        default="ethereum",
        description="Environment queried by test_connection()",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   DEPLOYCHAIN_LOG_LEVEL               → config.log_level
#   DEPLOYCHAIN_MAX_CONCURRENT_RUNS     → config.max_concurrent_runs
#   DEPLOYCHAIN_EXECUTOR__GIT_BINARY    → config.executor.git_binary
#   DEPLOYCHAIN_PUBLISHER__BASE_URL     → config.publisher.base_url
# =============================================================================
class DeployChainConfig(BaseSettings):
    """Top-level configuration for DeployChain.

    Attributes:
        environment: Deployment environment of this service.
        log_level: Logging level name.
        max_concurrent_runs: How many pipeline runs may execute at once.
            Runs beyond the limit wait for a free slot in the pending state.
        result_url_template: Format string for the published result URL.
            Receives ``deployment_id`` and ``project_name``.
        deployment_type: Deployment type recorded on new records.
        executor: Stage executor configuration (see ExecutorConfig).
        publisher: Publisher configuration (see PublisherConfig).

    Example:
        >>> config = DeployChainConfig(
        ...     max_concurrent_runs=2,
        ...     publisher=PublisherConfig(backend="mock"),
        ... )
    """

    # -------------------------------------------------------------------------
    # General Settings
    # -------------------------------------------------------------------------
    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment of this service",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    max_concurrent_runs: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Maximum number of pipeline runs executing at once",
    )
    result_url_template: str = Field(
        default="https://app-{deployment_id}.deploychain.locci.cloud",
        description="Format string for the URL of a deployed result",
    )
    deployment_type: DeploymentType = Field(
        default=DeploymentType.DAPP,
        description="Deployment type recorded on new records",
    )

    # -------------------------------------------------------------------------
    # Nested Configurations
    # -------------------------------------------------------------------------
    executor: ExecutorConfig = Field(
        default_factory=ExecutorConfig,
        description="Stage executor configuration",
    )
    publisher: PublisherConfig = Field(
        default_factory=PublisherConfig,
        description="Publisher configuration",
    )

    model_config = {
        "env_prefix": "DEPLOYCHAIN_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> DeployChainConfig:
    """Load DeployChain configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'deploychain.yaml' in the current directory. If that doesn't
            exist either, uses pure defaults + environment variables.

    Returns:
        A fully validated DeployChainConfig instance.

    Raises:
        FileNotFoundError: If an explicit path is provided but doesn't exist.
        ConfigurationError: If the YAML document is not a mapping.
    """
    if path is None:
        default_path = Path("deploychain.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}. "
                f"Create one or configure DeployChain through DEPLOYCHAIN_* variables."
            )

        with open(config_path) as f:
            raw_data = yaml.safe_load(f)

        if raw_data is None:
            raw_data = {}
        if not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Configuration file {path} must contain a mapping",
                details={"path": str(path), "type": type(raw_data).__name__},
            )
        yaml_data = raw_data

    return DeployChainConfig(**yaml_data)
