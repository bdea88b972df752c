"""Test suite for mindful.

- unit/: one directory per ``mindful.core`` package plus the CLI
- integration/: multi-store and multi-context scenarios
"""
