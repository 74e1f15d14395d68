"""Content fingerprinting for change detection."""

import hashlib


def content_fingerprint(body: str) -> str:
    """
    Fingerprint an article body.

    SHA-256 of the body with leading/trailing whitespace stripped, as a
    64-character hex digest. Stable across processes and Python versions.
    """
    return hashlib.sha256(body.strip().encode("utf-8")).hexdigest()
