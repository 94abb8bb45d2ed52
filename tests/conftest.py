"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A fresh in-memory registry per test
- A registry pre-populated with competing packages
"""

import pytest

from src.domain.registry import HostOwnershipRegistry


@pytest.fixture
def registry() -> HostOwnershipRegistry:
    """Create an empty registry for each test."""
    return HostOwnershipRegistry()


@pytest.fixture
def populated_registry(registry: HostOwnershipRegistry) -> HostOwnershipRegistry:
    """Registry where three packages all declare example.com for user 0."""
    for package_name in ("com.example.browser", "com.example.news", "com.example.shop"):
        registry.add_package(0, package_name, ["example.com", f"{package_name}.example.org"])
    return registry
