"""Core domain layer - entities, interfaces, services and exceptions."""

from feedmill.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
