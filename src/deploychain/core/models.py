"""
deploychain.core.models - Core Data Models
============================================

This module defines the Pydantic data models that flow through every layer
of DeployChain.

Model Hierarchy:
    DeploymentRequest → What should be built? (source, revision, project)
    PushEvent         → Inbound webhook payload, translated to a request
    DeploymentRecord  → Persistent lifecycle of one deployment run
    BuildArtifact     → One compiled unit produced by the stage executor
    PublishReceipt    → Raw per-artifact response from the publisher
    PublishOutcome    → Normalized result of reconciling all receipts
    BuildLogEntry     → Per-stage progress line attached to a record
    HealthReport      → Result of probing the external collaborators

Data Flow Through Architecture:
    ┌──────────────┐  DeploymentRequest  ┌──────────────────┐
    │  Submitter   │ ──────────────────→ │  Orchestrator     │
    └──────────────┘                     │                   │
                                         │  BuildArtifact[]  │──→ Publisher
                                         │  PublishReceipt[] │←── Publisher
                                         │  PublishOutcome   │
                                         └────────┬──────────┘
                                                  │ DeploymentRecord
                                                  ▼
                                         ┌──────────────────┐
                                         │  Record Store     │
                                         └──────────────────┘

Design Principles:
    1. DeploymentRecord and BuildArtifact are frozen: a status change
       produces a new record value (see core/state.py)
    2. Self-validating: Pydantic enforces type/value constraints at creation
    3. Serializable: All models convert to/from JSON
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from deploychain.core.enums import (
    DeploymentStatus,
    DeploymentType,
    HealthStatus,
    LogLevel,
    PipelineStage,
)


BRANCH_REF_PREFIX = "refs/heads/"


def _now() -> datetime:
    """Get the current UTC timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# Deployment Request
# =============================================================================
# The (source location, revision, project name) triple that every inbound
# path converges on. Blank values are rejected before any record exists.
# =============================================================================
class DeploymentRequest(BaseModel):
    """A validated request to build and publish a project.

    Attributes:
        source_location: Repository clone URL or path.
        revision: Branch (or other ref) to build.
        project_name: Display name for the deployment record.

    Example:
        >>> request = DeploymentRequest(
        ...     source_location="https://github.com/acme/token.git",
        ...     revision="main",
        ...     project_name="token",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    source_location: str = Field(description="Repository clone URL or path")
    revision: str = Field(description="Branch or ref to build")
    project_name: str = Field(description="Display name of the project")

    @field_validator("source_location", "revision", "project_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class PushRepository(BaseModel):
    """Repository section of a push notification."""

    clone_url: str = Field(description="URL the repository can be cloned from")


class PushEvent(BaseModel):
    """Inbound push notification payload.

    Only the fields needed to start a deployment are modelled; any other
    keys in the payload are ignored.

    Example:
        >>> event = PushEvent.model_validate({
        ...     "repository": {"clone_url": "https://github.com/acme/token.git"},
        ...     "ref": "refs/heads/main",
        ... })
        >>> event.branch
        'main'
    """

    repository: PushRepository
    ref: str = Field(description="Pushed ref, e.g. refs/heads/main")

    @property
    def branch(self) -> str:
        """Branch name derived by stripping the refs/heads/ prefix."""
        if self.ref.startswith(BRANCH_REF_PREFIX):
            return self.ref[len(BRANCH_REF_PREFIX):]
        return self.ref


# =============================================================================
# Deployment Record
# =============================================================================
# The persistent lifecycle of one deployment run. Owned by the record store;
# the orchestrator only holds a snapshot during a run.
#
# Invariants (enforced by core/state.transition):
#   status == DEPLOYED → url is non-empty
#   status == FAILED   → error_message is non-empty
# =============================================================================
class DeploymentRecord(BaseModel):
    """Persistent state of a deployment.

    Attributes:
        deployment_id: Identifier assigned by the record store on create.
            None until the record has been persisted.
        project_name: Display name of the project.
        status: Current lifecycle state.
        url: URL of the published result. Set on DEPLOYED.
        deployment_type: Kind of project being deployed.
        placements: Artifact name → placement identifier (address).
        transaction_ids: Transaction identifiers, in artifact processing order.
        target_environment: Environment the artifacts were published to.
        resource_cost: Accumulated resource cost (e.g. gas) of the run.
        error_message: Failure description. Empty unless FAILED.
        created_at: When the record was created (UTC).
        updated_at: When the record last changed (UTC).
    """

    model_config = ConfigDict(frozen=True)

    deployment_id: Optional[int] = Field(
        default=None,
        description="Store-assigned identifier (None before create)",
    )
    project_name: str = Field(description="Display name of the project")
    status: DeploymentStatus = Field(
        default=DeploymentStatus.PENDING,
        description="Lifecycle state",
    )
    url: str = Field(default="", description="URL of the published result")
    deployment_type: DeploymentType = Field(
        default=DeploymentType.DAPP,
        description="Kind of project being deployed",
    )
    placements: dict[str, str] = Field(
        default_factory=dict,
        description="Artifact name → placement identifier",
    )
    transaction_ids: list[str] = Field(
        default_factory=list,
        description="Transaction identifiers in processing order",
    )
    target_environment: str = Field(description="Target environment name")
    resource_cost: int = Field(
        default=0,
        ge=0,
        description="Accumulated resource cost of the run",
    )
    error_message: str = Field(default="", description="Failure description")
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @property
    def is_terminal(self) -> bool:
        """Whether the record reached DEPLOYED or FAILED."""
        return self.status in (DeploymentStatus.DEPLOYED, DeploymentStatus.FAILED)


# =============================================================================
# Build Artifact
# =============================================================================
class BuildArtifact(BaseModel):
    """A named, immutable unit of compiled output.

    Attributes:
        name: Artifact name, unique within one run.
        bytecode: Compiled payload.
        abi: Interface description, serialized as JSON text.
        source_code: Original source, when the executor captured it.
        compiler_version: Version of the compiler that produced it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    bytecode: str
    abi: str = "[]"
    source_code: Optional[str] = None
    compiler_version: Optional[str] = None


# =============================================================================
# Publish Receipt / Outcome
# =============================================================================
# PublishReceipt is what a publisher returns for one successful call. Every
# field is optional and the cost figure is left unparsed: turning receipts
# into numbers is the reconciler's job, not the adapter's.
# =============================================================================
class PublishReceipt(BaseModel):
    """Raw response of one successful publish call.

    Attributes:
        placement_id: Where the artifact was placed (e.g. an address).
        transaction_id: Identifier of the publishing transaction.
        cost_figure: Resource-cost figure as reported, not yet parsed.
        raw: The untouched response body, for debugging.
    """

    placement_id: Optional[str] = None
    transaction_id: Optional[str] = None
    cost_figure: Optional[Union[int, str]] = None
    raw: dict[str, Any] = Field(default_factory=dict)


class PublishOutcome(BaseModel):
    """Normalized result of publishing a set of artifacts.

    Attributes:
        placements: Artifact name → placement identifier. Every artifact the
            publisher reported success for appears here, unless its
            placement could not be extracted (see missing_placements).
        transaction_ids: Transaction identifiers in processing order.
        total_cost: Sum of every parseable cost figure.
        missing_placements: Artifacts published without a placement identifier.
        warnings: Non-fatal inconsistencies met while reconciling.
    """

    placements: dict[str, str] = Field(default_factory=dict)
    transaction_ids: list[str] = Field(default_factory=list)
    total_cost: int = Field(default=0, ge=0)
    missing_placements: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# Build Log Entry
# =============================================================================
class BuildLogEntry(BaseModel):
    """One progress line recorded against a deployment."""

    deployment_id: int
    stage: PipelineStage
    message: str
    level: LogLevel = LogLevel.INFO
    timestamp: datetime = Field(default_factory=_now)


# =============================================================================
# Health Report
# =============================================================================
class ComponentHealth(BaseModel):
    """Reachability of one collaborator."""

    healthy: bool
    error: Optional[str] = None


class HealthReport(BaseModel):
    """Aggregate reachability of the record store and the publisher.

    Attributes:
        status: HEALTHY when every check passed, DEGRADED otherwise.
        checks: Per-component results keyed by component name.
    """

    status: HealthStatus
    checks: dict[str, ComponentHealth] = Field(default_factory=dict)

    @property
    def failed_components(self) -> list[str]:
        """Names of the components whose check failed."""
        return [name for name, check in self.checks.items() if not check.healthy]
