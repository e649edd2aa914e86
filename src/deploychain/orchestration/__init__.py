"""
deploychain.orchestration - Pipeline Orchestration Layer
==========================================================

    - pipeline:    PipelineOrchestrator (submission, runs, terminal writes)
    - reconciler:  PublishReconciler (publisher receipts → PublishOutcome)
    - inbound:     Direct submission / push event → DeploymentRequest
    - health:      HealthProbe over the record store and the publisher
"""

from deploychain.orchestration.health import HealthProbe
from deploychain.orchestration.inbound import parse_submission, request_from_push_event
from deploychain.orchestration.pipeline import PipelineOrchestrator
from deploychain.orchestration.reconciler import PublishReconciler, parse_cost_figure

__all__ = [
    "HealthProbe",
    "PipelineOrchestrator",
    "PublishReconciler",
    "parse_cost_figure",
    "parse_submission",
    "request_from_push_event",
]
