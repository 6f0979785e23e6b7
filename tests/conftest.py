import pytest

from nostr_connect.crypto.keys import generate_private_key, get_public_key


class FakeClock:
    """Settable unix-seconds clock for session lifecycle tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def signer_key() -> str:
    return generate_private_key()


@pytest.fixture
def client_key() -> str:
    return generate_private_key()


@pytest.fixture
def client_pubkey(client_key: str) -> str:
    return get_public_key(client_key)


@pytest.fixture
def note() -> dict:
    return {
        "pubkey": "",
        "created_at": 1_700_000_000,
        "kind": 1,
        "tags": [],
        "content": "hello",
    }
