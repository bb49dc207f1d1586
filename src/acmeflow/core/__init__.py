"""Shared types, errors and async primitives."""
