"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Request
from psycopg_pool import ConnectionPool

from src.adapters.broadcast.console import ConsoleVerificationAgent
from src.adapters.repository.postgres import PostgresPackageStateRepository
from src.domain.registry import HostOwnershipRegistry
from src.domain.service import DomainVerificationService, UserWriteLocks

# Module-level singleton - ConsoleVerificationAgent is stateless
_verification_agent = ConsoleVerificationAgent()


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_registry(request: Request) -> HostOwnershipRegistry:
    """
    Get the process-wide registry from app state.

    The registry is created and restored during app lifespan startup.
    """
    return request.app.state.registry


def get_repository(request: Request) -> PostgresPackageStateRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresPackageStateRepository(pool)


def get_verification_agent() -> ConsoleVerificationAgent:
    """Get console verification agent (singleton)."""
    return _verification_agent


def get_write_locks(request: Request) -> UserWriteLocks:
    """
    Get the process-wide per-user write locks from app state.

    Shared by every per-request service so writes for one user stay ordered.
    """
    return request.app.state.write_locks


def get_domain_verification_service(request: Request) -> DomainVerificationService:
    """
    Create domain verification service with injected dependencies.

    Wires together the registry, repository, verification agent and the
    shared write locks.
    """
    return DomainVerificationService(
        registry=get_registry(request),
        repository=get_repository(request),
        agent=get_verification_agent(),
        write_locks=get_write_locks(request),
    )
