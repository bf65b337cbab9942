from __future__ import annotations

import base64
import secrets
from dataclasses import dataclass
from typing import Final

from blake3 import blake3

from rps_errors import MalformedInputError

DIGEST_SIZE: Final[int] = 32


@dataclass(frozen=True)
class Commitment:
    digest: bytes

    def __post_init__(self) -> None:
        if len(self.digest) != DIGEST_SIZE:
            raise ValueError(f"commitment digest must be {DIGEST_SIZE} bytes, got {len(self.digest)}")

    def hex(self) -> str:
        return self.digest.hex()

    @classmethod
    def from_hex(cls, value: str) -> "Commitment":
        text = value.strip().lower()
        if len(text) != DIGEST_SIZE * 2:
            raise MalformedInputError("commitment", value, f"expected {DIGEST_SIZE * 2} hex characters")
        try:
            return cls(bytes.fromhex(text))
        except ValueError:
            raise MalformedInputError("commitment", value, "not a hex string") from None

    def __str__(self) -> str:
        return self.hex()


def generate_salt(num_bytes: int = 16) -> str:
    # base64url without padding keeps the salt copy-pasteable at a prompt.
    raw = secrets.token_bytes(num_bytes)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def commit(choice: str, salt: str) -> Commitment:
    """BLAKE3 over the choice bytes followed by the salt bytes, no separator.

    The same salt must not be reused across rounds: with only three moves,
    a repeated salt makes the commitment guessable.
    """
    hasher = blake3()
    hasher.update(choice.encode("utf-8"))
    hasher.update(salt.encode("utf-8"))
    return Commitment(hasher.digest())


def reveal(commitment: Commitment, choice: str, salt: str) -> bool:
    computed = commit(choice, salt)
    return secrets.compare_digest(commitment.digest, computed.digest)
