"""Adapters binding the application ports to the filesystem."""
