import hashlib


def hash_stable(data: str) -> str:
    """Create stable hash using SHA256"""
    return hashlib.sha256(data.encode()).hexdigest()[:16]


def hash_bytes(data: bytes) -> str:
    """Content hash for media payloads"""
    return hashlib.sha256(data).hexdigest()
