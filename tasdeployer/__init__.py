"""Manifest updates, scheduler configuration rendering and settings validation for topology-aware scheduling."""

__version__ = "0.1.0"

__all__ = ["objectupdate", "options", "rte", "schedrender", "stringify", "validator"]