"""FTP operations module for ftptree.

This module handles all FTP-related functionality:
- FTPSession: Connection lifecycle with state tracking and typed operations
- PathClassifier: Directory detection by navigation
- TransferMode: Extension-based text/binary resolution
- TreeMirror: Local-to-remote tree mirroring
- TreeDeleter: Recursive remote directory deletion
- Exceptions: FTP-specific error types
"""
