"""Shared models, configuration, errors and helpers."""
