from __future__ import annotations

import hashlib
from enum import Enum


class HashAlgorithm(str, Enum):
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    @property
    def digest_size(self) -> int:
        return hashlib.new(self.value).digest_size

    @classmethod
    def parse(cls, raw: str) -> HashAlgorithm:
        """Accept spellings such as ``SHA-256`` or ``sha256``."""
        normalized = raw.strip().lower().replace("-", "").replace("_", "")
        for alg in cls:
            if alg.value == normalized:
                return alg
        raise ValueError(f"Unsupported hash algorithm: {raw}")


def compute_bytes_digest(data: bytes, alg: HashAlgorithm = HashAlgorithm.SHA256) -> bytes:
    h = hashlib.new(alg.value)
    h.update(data)
    return h.digest()

