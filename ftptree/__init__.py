"""ftptree: FTP/FTPS client with recursive mirror and tree deletion.

Subpackages:
- ftp: session lifecycle, transfer modes, directory probing, mirror, tree deletion
- config: connection profiles and keyring credentials
- utils: logging, validation, formatting
"""
