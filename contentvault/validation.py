# contentvault/validation.py
"""
Input checks for new content.

Each check returns the ErrorKind of the violated rule, or None.
"""

from typing import Any, List, Optional

from .errors import ErrorKind

MAX_TITLE_LENGTH = 64
MAX_SUMMARY_LENGTH = 128
MAX_SIZE_BYTES = 1_000_000_000  # exclusive
MAX_LABELS = 10
MAX_LABEL_LENGTH = 32


def _text_within(value: Any, max_length: int) -> bool:
    return isinstance(value, str) and 0 < len(value) <= max_length


def check_metadata(title: str, summary: str) -> Optional[ErrorKind]:
    if not _text_within(title, MAX_TITLE_LENGTH):
        return ErrorKind.METADATA_INVALID
    if not _text_within(summary, MAX_SUMMARY_LENGTH):
        return ErrorKind.METADATA_INVALID
    return None


def check_size(size_bytes: int) -> Optional[ErrorKind]:
    # bool is an int subclass; True is not a size
    if isinstance(size_bytes, bool) or not isinstance(size_bytes, int):
        return ErrorKind.SIZE_LIMIT_EXCEEDED
    if not 0 < size_bytes < MAX_SIZE_BYTES:
        return ErrorKind.SIZE_LIMIT_EXCEEDED
    return None


def check_labels(labels: List[str]) -> Optional[ErrorKind]:
    if not isinstance(labels, (list, tuple)):
        return ErrorKind.TAG_FORMAT_ERROR
    if not 0 < len(labels) <= MAX_LABELS:
        return ErrorKind.TAG_FORMAT_ERROR
    for label in labels:
        if not _text_within(label, MAX_LABEL_LENGTH):
            return ErrorKind.TAG_FORMAT_ERROR
    return None


def check_new_content(
    title: str,
    size_bytes: int,
    summary: str,
    labels: List[str],
) -> Optional[ErrorKind]:
    """
    Run every creation check in order and return the first failure.

    Order: title and summary, then size, then labels.
    """
    return (
        check_metadata(title, summary)
        or check_size(size_bytes)
        or check_labels(labels)
    )
