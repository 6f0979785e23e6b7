"""Tests for the bounded proof-of-work search."""

import asyncio

import pytest
from pydantic import ValidationError

from nostr_connect.crypto.events import get_event_hash
from nostr_connect.crypto.pow import (
    ProofOfWorkBudget,
    count_leading_zero_bits,
    has_valid_proof_of_work,
    mine_event,
    set_nonce_tag,
)
from nostr_connect.errors import InvalidInputError, ProofOfWorkError


@pytest.mark.parametrize("hex_str,expected", [
    ("", 0),
    ("f", 0),
    ("8", 0),
    ("7", 1),
    ("1", 3),
    ("0f", 4),
    ("00ff", 8),
    ("0001", 15),
    ("0" * 64, 256),
])
def test_count_leading_zero_bits(hex_str, expected):
    assert count_leading_zero_bits(hex_str) == expected


def test_set_nonce_tag_replaces_existing():
    tags = [["t", "nostr"], ["nonce", "5", "8"]]
    assert set_nonce_tag(tags, 9, 10) == [["t", "nostr"], ["nonce", "9", "10"]]
    assert tags == [["t", "nostr"], ["nonce", "5", "8"]]


class TestBudget:
    def test_requires_a_bound(self):
        with pytest.raises(ValidationError):
            ProofOfWorkBudget()

    def test_rejects_non_positive_values(self):
        with pytest.raises(ValidationError):
            ProofOfWorkBudget(max_attempts=0)
        with pytest.raises(ValidationError):
            ProofOfWorkBudget(timeout=-1)


class TestMining:
    @pytest.mark.asyncio
    async def test_difficulty_zero_skips_search(self, note):
        mined = await mine_event(note, 0, ProofOfWorkBudget(max_attempts=1))
        assert mined["tags"] == [["nonce", "0", "0"]]
        assert note["tags"] == []

    @pytest.mark.asyncio
    async def test_finds_nonce(self, note):
        mined = await mine_event(note, 8, ProofOfWorkBudget(max_attempts=200_000))
        assert count_leading_zero_bits(get_event_hash(mined)) >= 8
        assert has_valid_proof_of_work(mined, 8)
        nonce_tag = [t for t in mined["tags"] if t[0] == "nonce"]
        assert len(nonce_tag) == 1
        assert nonce_tag[0][2] == "8"

    @pytest.mark.asyncio
    async def test_attempt_budget_exhausted(self, note):
        with pytest.raises(ProofOfWorkError) as exc_info:
            await mine_event(note, 60, ProofOfWorkBudget(max_attempts=50))
        assert exc_info.value.details == {"attempts": 50}

    @pytest.mark.asyncio
    async def test_timeout(self, note):
        budget = ProofOfWorkBudget(timeout=0.01, batch_size=10)
        with pytest.raises(ProofOfWorkError, match="timed out"):
            await mine_event(note, 200, budget)

    @pytest.mark.asyncio
    async def test_cancel_signal(self, note):
        cancel = asyncio.Event()
        cancel.set()
        budget = ProofOfWorkBudget(max_attempts=1_000_000, batch_size=10)
        with pytest.raises(ProofOfWorkError, match="cancelled"):
            await mine_event(note, 200, budget, cancel=cancel)

    @pytest.mark.asyncio
    async def test_task_cancellation(self, note):
        task = asyncio.ensure_future(mine_event(note, 200, ProofOfWorkBudget(timeout=60, batch_size=10)))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    @pytest.mark.parametrize("difficulty", [-1, 257, "8", 1.5, True])
    async def test_invalid_difficulty(self, note, difficulty):
        with pytest.raises(InvalidInputError):
            await mine_event(note, difficulty, ProofOfWorkBudget(max_attempts=1))
