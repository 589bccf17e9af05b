"""Synapse - wellness and productivity companion service."""

__version__ = "0.1.0"
