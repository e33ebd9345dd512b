"""Persistence layer for Synapse Notes."""

from synapse_notes.database.repository import Repository

__all__ = ["Repository"]
