"""Orchestration and data models."""
