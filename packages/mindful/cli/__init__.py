"""Maintenance command line for mindful storage."""
