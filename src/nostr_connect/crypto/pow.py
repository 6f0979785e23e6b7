"""
Proof of work (NIP-13).

The nonce search is always bounded: a ProofOfWorkBudget caps attempts and/or
wall-clock time, and an optional asyncio.Event cancels it between batches.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from nostr_connect.crypto.events import get_event_hash
from nostr_connect.errors import InvalidInputError, ProofOfWorkError

logger = logging.getLogger(__name__)

MAX_DIFFICULTY = 256
DEFAULT_POW_BATCH_SIZE = 1000


class ProofOfWorkBudget(BaseModel):
    max_attempts: Optional[int] = Field(default=None, gt=0)
    timeout: Optional[float] = Field(default=None, gt=0)
    batch_size: int = Field(default=DEFAULT_POW_BATCH_SIZE, gt=0)

    @model_validator(mode="after")
    def _require_bound(self) -> "ProofOfWorkBudget":
        if self.max_attempts is None and self.timeout is None:
            raise ValueError("ProofOfWorkBudget needs max_attempts or timeout")
        return self


DEFAULT_POW_BUDGET = ProofOfWorkBudget(max_attempts=5_000_000, timeout=30.0)


def count_leading_zero_bits(hex_str: str) -> int:
    bits = 0
    for char in hex_str:
        nibble = int(char, 16)
        if nibble == 0:
            bits += 4
            continue
        bits += 4 - nibble.bit_length()
        break
    return bits


def has_valid_proof_of_work(event: Mapping[str, Any], difficulty: int) -> bool:
    return count_leading_zero_bits(get_event_hash(event)) >= difficulty


def set_nonce_tag(tags: list[list[str]], nonce: int, difficulty: int) -> list[list[str]]:
    """Return a copy of tags with a single ["nonce", n, difficulty] tag."""
    kept = [list(tag) for tag in tags if not (tag and tag[0] == "nonce")]
    kept.append(["nonce", str(nonce), str(difficulty)])
    return kept


def validate_difficulty(difficulty: Any) -> int:
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise InvalidInputError("difficulty must be an integer")
    if not 0 <= difficulty <= MAX_DIFFICULTY:
        raise InvalidInputError(f"difficulty must be between 0 and {MAX_DIFFICULTY}")
    return difficulty


async def mine_event(
    event: Mapping[str, Any],
    difficulty: int,
    budget: ProofOfWorkBudget = DEFAULT_POW_BUDGET,
    cancel: Optional[asyncio.Event] = None,
) -> dict[str, Any]:
    """Search for a nonce tag giving at least `difficulty` leading zero bits.

    Returns a new event dict; the input is not modified. Raises ProofOfWorkError
    when the budget runs out or `cancel` is set.
    """
    difficulty = validate_difficulty(difficulty)
    mined = dict(event)
    base_tags = list(event.get("tags", []))

    if difficulty == 0:
        mined["tags"] = set_nonce_tag(base_tags, 0, 0)
        return mined

    deadline = time.monotonic() + budget.timeout if budget.timeout is not None else None
    nonce = 0
    while True:
        if budget.max_attempts is not None and nonce >= budget.max_attempts:
            raise ProofOfWorkError(f"Proof of work budget exhausted after {nonce} attempts", attempts=nonce)

        mined["tags"] = set_nonce_tag(base_tags, nonce, difficulty)
        if count_leading_zero_bits(get_event_hash(mined)) >= difficulty:
            logger.debug(f"Found difficulty {difficulty} nonce after {nonce + 1} attempts")
            return mined
        nonce += 1

        if nonce % budget.batch_size == 0:
            await asyncio.sleep(0)
            if cancel is not None and cancel.is_set():
                raise ProofOfWorkError(f"Proof of work cancelled after {nonce} attempts", attempts=nonce)
            if deadline is not None and time.monotonic() >= deadline:
                raise ProofOfWorkError(f"Proof of work timed out after {nonce} attempts", attempts=nonce)
