"""Human-readable formatting helpers for ftptree."""

KB = 1024
MB = KB * 1024
GB = MB * 1024


def _one_decimal(value: float) -> str:
    """Round to one decimal, dropping a trailing '.0'."""
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


def format_size(size: int) -> str:
    """
    Format a byte count for display.

    Args:
        size: Size in bytes

    Returns:
        String like "512 bytes", "1.5 KB", "20 MB" or "3.2 GB"
    """
    if size < KB:
        return f"{size} bytes"
    if size < MB:
        return f"{_one_decimal(size / KB)} KB"
    if size < GB:
        return f"{_one_decimal(size / MB)} MB"
    return f"{_one_decimal(size / GB)} GB"
