"""
Shared fixtures for adversarial tests.

Provides common test infrastructure for concurrent ownership contention tests.
"""

import pytest

from src.domain.registry import HostOwnershipRegistry

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@pytest.fixture
def contested_registry() -> HostOwnershipRegistry:
    """Registry where 20 packages of user 0 all declare contested.example.com."""
    registry = HostOwnershipRegistry()
    for i in range(20):
        registry.add_package(0, f"com.attacker{i:02d}", ["contested.example.com"])
    return registry
