"""
deploychain.integrations.executor - Stage Executors
=====================================================

Fetch, classify, and compile source trees.

Usage:
    from deploychain.integrations.executor import create_stage_executor, MockStageExecutor
"""

from deploychain.integrations.executor.base import (
    SourceTree,
    StageExecutor,
    is_recognized_project,
)
from deploychain.integrations.executor.factory import create_stage_executor
from deploychain.integrations.executor.local import LocalSourceTree, LocalStageExecutor
from deploychain.integrations.executor.mock import InMemorySourceTree, MockStageExecutor

__all__ = [
    "InMemorySourceTree",
    "LocalSourceTree",
    "LocalStageExecutor",
    "MockStageExecutor",
    "SourceTree",
    "StageExecutor",
    "create_stage_executor",
    "is_recognized_project",
]
