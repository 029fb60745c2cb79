import pytest

from ezpay.security import PinHasher


@pytest.fixture
def hasher():
    return PinHasher(rounds=4)


def test_hash_is_salted(hasher):
    first = hasher.hash("1234")
    second = hasher.hash("1234")

    assert first != second
    assert first.startswith("$2b$04$")
    assert hasher.verify("1234", first)
    assert hasher.verify("1234", second)


def test_wrong_pin(hasher):
    assert not hasher.verify("4321", hasher.hash("1234"))


@pytest.mark.parametrize("hashed", [None, "", "1234", "pbkdf2_sha256$1000$salt$abc"])
def test_non_bcrypt_values_never_verify(hasher, hashed):
    assert not hasher.verify("1234", hashed)


def test_cost_read_from_stored_hash():
    stored = PinHasher(rounds=4).hash("2468")

    assert PinHasher(rounds=5).verify("2468", stored)
