"""Locate running Neovim servers and pick the one that owns a file path."""

from .selector import InstanceSelector, discover_instances, select_instance

__all__ = ["InstanceSelector", "discover_instances", "select_instance"]
