"""Shared governance primitives, configuration and utilities."""
