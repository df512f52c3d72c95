from __future__ import annotations

import hmac

from buildvalidator.core.hashing import HashAlgorithm, compute_bytes_digest


class ChecksumVerifier:
    """Compares recorded digests against content using the record's own algorithm."""

    @staticmethod
    def compute(algorithm: HashAlgorithm, content: bytes) -> bytes:
        return compute_bytes_digest(content, algorithm)

    @staticmethod
    def matches(declared_hash: bytes, actual_hash: bytes) -> bool:
        if len(declared_hash) != len(actual_hash):
            return False
        return hmac.compare_digest(declared_hash, actual_hash)

    def verify(self, declared_hash: bytes, declared_algorithm: HashAlgorithm, content: bytes) -> bool:
        return self.matches(declared_hash, self.compute(declared_algorithm, content))
