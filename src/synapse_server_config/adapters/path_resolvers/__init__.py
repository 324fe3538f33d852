"""Configuration file location."""
