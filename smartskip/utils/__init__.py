from .filename import filename_from_url, sanitize_filename
from .hash import hash_bytes, hash_stable

__all__ = ["filename_from_url", "hash_bytes", "hash_stable", "sanitize_filename"]
