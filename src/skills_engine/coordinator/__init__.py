"""Outbound coordinator gateway client."""

from skills_engine.coordinator.client import CoordinatorClient, create_coordinator_client

__all__ = ["CoordinatorClient", "create_coordinator_client"]
