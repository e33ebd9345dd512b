"""Synapse Notes: voice notes turned into connected knowledge."""

__version__ = "0.1.0"
