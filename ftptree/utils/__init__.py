"""Utility module for ftptree.

This module provides cross-cutting utilities:
- Logging: Configured logging with credential redaction
- Validators: Input validation for host, port, timeout, paths
- Formatting: Human-readable byte sizes
"""
