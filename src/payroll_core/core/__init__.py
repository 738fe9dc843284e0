"""Shared primitives: ids, clock, enums, errors, results and settings."""
