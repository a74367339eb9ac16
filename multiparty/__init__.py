"""Multiparty session types: protocol state machines, their rendering and subtyping, typed sessions over in-memory channels, and choreographies."""

__version__ = "0.1.1"