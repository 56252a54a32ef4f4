"""
Service Layer Package

Wires the progression engine to its collaborators (store, event bus) and
manages one engine per user session.
"""

from jobquest.services.container import ServiceContainer, build_container

__all__ = [
    "ServiceContainer",
    "build_container",
]
