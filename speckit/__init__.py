"""Spec Kit workspace store and pipeline orchestration."""
