"""Repo specs, configuration, policies, git queries and mutations, conflicts and dependency updates."""

__version__ = "0.1.0"

__all__ = ["__version__"]