"""
deploychain.integrations.publisher - Artifact Publishers
==========================================================

Place compiled artifacts into a target environment.

Usage:
    from deploychain.integrations.publisher import create_publisher, MockPublisher
"""

from deploychain.integrations.publisher.base import Publisher
from deploychain.integrations.publisher.factory import create_publisher
from deploychain.integrations.publisher.mock import MockPublisher
from deploychain.integrations.publisher.multibaas import MultiBaasPublisher

__all__ = [
    "MockPublisher",
    "MultiBaasPublisher",
    "Publisher",
    "create_publisher",
]
