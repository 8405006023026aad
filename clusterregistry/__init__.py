"""Cluster registry resource models, spec merging, controller configuration loading and JWKS generation."""

__version__ = "0.1.0"