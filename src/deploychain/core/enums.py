"""
deploychain.core.enums - Type-Safe Enumerations
=================================================

This module defines the enumeration types used throughout DeployChain.

All enums inherit from both `str` and `Enum`, which means:
    - They serialize to strings in JSON/YAML (Pydantic-friendly)
    - They can be compared with plain strings: DeploymentStatus.FAILED == "failed"

Architecture Mapping:
    ┌─────────────────────────────────────────────────────────────────┐
    │  DEPLOYMENT RECORD                                              │
    │    DeploymentStatus: pending → building → deployed | failed     │
    │    DeploymentType:   what kind of project was deployed          │
    ├─────────────────────────────────────────────────────────────────┤
    │  PIPELINE                                                       │
    │    PipelineStage: fetch → classify → compile → publish          │
    ├─────────────────────────────────────────────────────────────────┤
    │  HEALTH                                                         │
    │    HealthStatus: healthy | degraded                             │
    └─────────────────────────────────────────────────────────────────┘
"""

from enum import Enum


# =============================================================================
# Deployment Status Enumeration
# =============================================================================
# The status state machine for a deployment record:
#
#   PENDING → BUILDING → DEPLOYED
#      │          │
#      └──────────┴────→ FAILED
#
# Transitions are one-directional. They are enforced by
# deploychain.core.state.transition().
# =============================================================================
class DeploymentStatus(str, Enum):
    """Lifecycle states of a deployment record.

    State Transitions:
        PENDING → BUILDING:  The pipeline run has started
        BUILDING → DEPLOYED: Every artifact published without a call error
        PENDING → FAILED:    The run could not start
        BUILDING → FAILED:   Any pipeline stage failed

    Usage:
        >>> record.status == DeploymentStatus.DEPLOYED
        True
    """

    PENDING = "pending"         # Record created, run scheduled
    BUILDING = "building"       # Pipeline stages are executing
    DEPLOYED = "deployed"       # Terminal success
    FAILED = "failed"           # Terminal failure


class DeploymentType(str, Enum):
    """Kind of project a deployment publishes."""

    STATIC = "static"   # Static site only
    DAPP = "dapp"       # Compiled contracts (+ optional frontend)


# =============================================================================
# Pipeline Stage Enumeration
# =============================================================================
# The stages run strictly in this order. Classification is cheap and runs
# before compilation so that unrecognized trees never consume build resources.
# =============================================================================
class PipelineStage(str, Enum):
    """Ordered stages of a deployment run."""

    FETCH = "fetch"           # Clone the source tree at the requested revision
    CLASSIFY = "classify"     # Decide whether the tree is a recognized project
    COMPILE = "compile"       # Produce build artifacts
    PUBLISH = "publish"       # Publish each artifact to the target environment


class HealthStatus(str, Enum):
    """Aggregate result of a health probe."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"


class LogLevel(str, Enum):
    """Severity of a persisted build-log entry."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
