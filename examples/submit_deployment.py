"""
Submit Deployment Example - One Run Through the Whole Pipeline
================================================================

This example submits two deployments against the mock backends and polls
their records:

    1. A Hardhat project with two contracts → deployed
    2. A static site with no contracts     → failed ("not a recognized project")

No git, npm, or MultiBaas instance is needed. Switch the backends in the
config (or with DEPLOYCHAIN_EXECUTOR__BACKEND / DEPLOYCHAIN_PUBLISHER__BACKEND)
to run against real collaborators.

Usage:
    python examples/submit_deployment.py
"""

from __future__ import annotations

import asyncio

from deploychain import DeployChain
from deploychain.core.config import DeployChainConfig, ExecutorConfig, PublisherConfig
from deploychain.core.models import BuildArtifact
from deploychain.integrations.executor.mock import MockStageExecutor
from deploychain.integrations.publisher.mock import MockPublisher


async def main() -> None:
    """Submit two deployments and print their final records."""
    config = DeployChainConfig(
        executor=ExecutorConfig(backend="mock"),
        publisher=PublisherConfig(backend="mock", target_environment="sepolia"),
    )

    executor = MockStageExecutor(
        config.executor,
        files={
            "contracts/Token.sol": "contract Token {}",
            "contracts/Market.sol": "contract Market {}",
            "hardhat.config.js": "module.exports = {};",
        },
        artifacts={
            "Token": BuildArtifact(name="Token", bytecode="0x6080"),
            "Market": BuildArtifact(name="Market", bytecode="0x6080"),
        },
    )
    executor.add_tree(
        "https://github.com/acme/landing-page.git",
        "main",
        {"index.html": "<html></html>"},
    )

    publisher = MockPublisher(config.publisher)
    publisher.queue_receipt(placement_id="0x5fbdb2315678afecb367f032d93f642f64180aa3",
                            transaction_id="0x1a2b", cost_figure="21000")
    publisher.queue_receipt(placement_id="0xe7f1725e7734ce288f8367e1bb143e90bb3f0512",
                            transaction_id="0x3c4d", cost_figure="34500")

    async with DeployChain(config, executor=executor, publisher=publisher) as chain:
        dapp_id = await chain.submit("https://github.com/acme/token.git", "main", "token")
        site_id = await chain.submit_push_event({
            "repository": {"clone_url": "https://github.com/acme/landing-page.git"},
            "ref": "refs/heads/main",
        })

        for deployment_id in (dapp_id, site_id):
            record = await chain.wait_for(deployment_id)
            print(f"Deployment {record.deployment_id}: {record.status.value}")
            if record.url:
                print(f"  URL:          {record.url}")
            for name, address in record.placements.items():
                print(f"  {name:<13} {address}")
            if record.transaction_ids:
                print(f"  Transactions: {', '.join(record.transaction_ids)}")
                print(f"  Cost:         {record.resource_cost}")
            if record.error_message:
                print(f"  Error:        {record.error_message}")

            for entry in await chain.get_build_logs(deployment_id):
                print(f"    [{entry.stage.value:<8}] {entry.message}")

        report = await chain.health()
        print(f"Health: {report.status.value}")


if __name__ == "__main__":
    asyncio.run(main())
