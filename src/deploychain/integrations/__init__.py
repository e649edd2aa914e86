"""
deploychain.integrations - External Collaborator Adapters
===========================================================

Each external collaborator sits behind an interface so implementations can
be swapped (real → mock) without touching the orchestrator.

Sub-packages:
    executor/   - Stage executors: fetch, classify, and compile source trees
    publisher/  - Publishers: place compiled artifacts in a target environment
"""

__all__: list[str] = []
