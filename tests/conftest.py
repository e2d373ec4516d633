"""Pytest configuration and shared fixtures for ftptree tests."""

import logging
from pathlib import Path

import pytest

from ftptree.ftp.connection import FTPSessionConfig
from ftptree.utils.logging import LOGGER_NAME


# Test constants
TEST_FTP_HOST = "127.0.0.1"
TEST_FTP_PORT = 2121
TEST_FTP_USER = "testuser"
TEST_FTP_PASS = "testpass"


@pytest.fixture
def ftp_config() -> FTPSessionConfig:
    """Provide a session configuration for tests."""
    return FTPSessionConfig(
        host=TEST_FTP_HOST,
        port=TEST_FTP_PORT,
        user=TEST_FTP_USER,
        password=TEST_FTP_PASS,
    )


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Create a small local tree with text, binary and hidden entries."""
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "img").mkdir()
    (root / ".git").mkdir()

    (root / "index.html").write_text("<html>\n<body>hello</body>\n</html>\n")
    (root / "README").write_text("no extension means text\n")
    (root / "css" / "style.css").write_text("body { color: red; }\n")
    (root / "img" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\xff\r\n")
    (root / ".env").write_text("SECRET=1\n")
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    return root


@pytest.fixture(autouse=True)
def reset_library_logger():
    """Keep logger configuration from leaking between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
