"""
sandbox-bootstrap — integration test package

File: tests/integration/__init__.py
Last updated: 2026-10-18

Purpose
- Test package marker file for tests that span several components on a real filesystem.

Functional requirements
- Must not touch anything outside pytest's temporary directories.
"""
