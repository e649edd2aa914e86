"""
deploychain.core - Foundation Layer
=====================================

Types shared by every other layer:

    - enums:      DeploymentStatus, PipelineStage, HealthStatus, ...
    - exceptions: DeployChainError hierarchy
    - config:     DeployChainConfig (pydantic-settings) + load_config()
    - models:     DeploymentRecord, BuildArtifact, PublishOutcome, ...
    - state:      The deployment status state machine
"""

from deploychain.core.config import (
    DeployChainConfig,
    ExecutorConfig,
    PublisherConfig,
    load_config,
)
from deploychain.core.enums import (
    DeploymentStatus,
    DeploymentType,
    HealthStatus,
    LogLevel,
    PipelineStage,
)
from deploychain.core.exceptions import (
    ClassificationError,
    CompilationError,
    ConfigurationError,
    DeployChainError,
    InvalidTransitionError,
    PersistenceError,
    PublishError,
    PublisherError,
    RecordNotFoundError,
    SourceFetchError,
    StageError,
    SubmissionValidationError,
)
from deploychain.core.models import (
    BuildArtifact,
    BuildLogEntry,
    DeploymentRecord,
    DeploymentRequest,
    HealthReport,
    PublishOutcome,
    PublishReceipt,
    PushEvent,
)
from deploychain.core.state import transition

__all__ = [
    "ClassificationError",
    "CompilationError",
    "ConfigurationError",
    "DeployChainError",
    "InvalidTransitionError",
    "PersistenceError",
    "PublishError",
    "PublisherError",
    "RecordNotFoundError",
    "SourceFetchError",
    "StageError",
    "SubmissionValidationError",
    "BuildArtifact",
    "BuildLogEntry",
    "DeployChainConfig",
    "DeploymentRecord",
    "DeploymentRequest",
    "DeploymentStatus",
    "DeploymentType",
    "ExecutorConfig",
    "HealthReport",
    "HealthStatus",
    "LogLevel",
    "PipelineStage",
    "PublishOutcome",
    "PublishReceipt",
    "PublisherConfig",
    "PushEvent",
    "load_config",
    "transition",
]
