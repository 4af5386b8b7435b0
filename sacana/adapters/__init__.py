"""Concrete adapters for the outbound ports."""
