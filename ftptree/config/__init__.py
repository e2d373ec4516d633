"""Configuration module for ftptree.

This module handles connection profiles and credentials:
- ProfileStore: JSON-based persistence of named connection profiles
- CredentialManager: Secure password storage via keyring
- Paths: Application data and log locations
"""
