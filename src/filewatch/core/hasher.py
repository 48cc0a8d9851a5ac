"""File hashing utilities for change detection."""
import hashlib
import logging
from pathlib import Path
from typing import BinaryIO, Optional

from .models import FINGERPRINT_BITS, Fingerprint


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096
MAX_KEY_SIZE = hashlib.blake2b.MAX_KEY_SIZE


def new_hasher(key: bytes = b""):
    """Create a 128-bit BLAKE2b accumulator, optionally keyed."""
    if len(key) > MAX_KEY_SIZE:
        raise ValueError(f"Hash key must be at most {MAX_KEY_SIZE} bytes, got {len(key)}")
    return hashlib.blake2b(key=key, digest_size=FINGERPRINT_BITS // 8)


def hash_stream(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE, key: bytes = b"") -> Fingerprint:
    """
    Compute the fingerprint of everything left in a binary stream.

    Args:
        stream: Stream opened for reading in binary mode
        chunk_size: Bytes to read at a time
        key: Optional BLAKE2b key

    Returns:
        Fingerprint of the bytes read
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    hasher = new_hasher(key)
    while chunk := stream.read(chunk_size):
        hasher.update(chunk)
    return Fingerprint.from_digest(hasher.digest())


def hash_file(
    file_path: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    key: bytes = b"",
) -> Optional[Fingerprint]:
    """
    Compute fingerprint of file contents.

    The file is opened fresh on every call and closed before returning.

    Args:
        file_path: Path to file
        chunk_size: Bytes to read at a time
        key: Optional BLAKE2b key

    Returns:
        Fingerprint of the file, or None if it could not be opened or read
    """
    try:
        with open(file_path, "rb") as f:
            return hash_stream(f, chunk_size, key)
    except OSError as e:
        logger.debug(f"Cannot hash {file_path}: {e}")
        return None
