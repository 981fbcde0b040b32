"""
Tests for Coral Generation

This package contains tests for:
- Volumes, geometry helpers and the branch forest
- Attractor culling and association
- The growth state machine and the mesher
- The host API and the CLI
"""
