"""Persistence adapters for the resolved configuration."""
