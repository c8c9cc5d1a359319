"""Unit tests for bcrypt password hashing."""

from src.tm_gateway.auth.password import hash_password, verify_password


def test_hash_round_trip():
    hashed = hash_password("Shopper2024")
    assert hashed != "Shopper2024"
    assert hashed.startswith("$2")
    assert verify_password("Shopper2024", hashed) is True


def test_wrong_password_rejected():
    assert verify_password("shopper2024", hash_password("Shopper2024")) is False


def test_salted():
    assert hash_password("Shopper2024") != hash_password("Shopper2024")


def test_malformed_stored_hash_is_a_mismatch():
    assert verify_password("Shopper2024", "not-a-bcrypt-hash") is False
