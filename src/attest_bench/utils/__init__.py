"""Shared constants, types, errors and configuration."""
