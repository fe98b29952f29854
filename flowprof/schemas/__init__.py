"""Packaged JSON Schemas for topology input documents."""
