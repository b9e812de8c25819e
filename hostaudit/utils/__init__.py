"""Shared helpers for running commands and writing files."""
