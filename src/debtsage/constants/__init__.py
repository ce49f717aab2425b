"""Shared constant tables."""
