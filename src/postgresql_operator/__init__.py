"""Kubernetes operator that provisions PostgreSQL instances for Database resources."""

__version__ = "0.1.0"
