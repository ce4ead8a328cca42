"""Shared utilities for shipform."""
