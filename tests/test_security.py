import pytest

from postboard.core.errors import InternalError


def test_hash_then_verify_accepts_the_same_secret(hasher):
    digest = hasher.hash("correct horse battery staple")

    assert digest.startswith("$argon2id$")
    assert hasher.verify("correct horse battery staple", digest) is True


def test_verify_rejects_a_different_secret(hasher):
    digest = hasher.hash("longpass1")

    assert hasher.verify("longpass2", digest) is False


def test_hashes_of_the_same_secret_are_salted_differently(hasher):
    assert hasher.hash("longpass1") != hasher.hash("longpass1")


def test_malformed_digest_is_an_internal_fault_not_a_mismatch(hasher):
    with pytest.raises(InternalError):
        hasher.verify("longpass1", "not-a-phc-string")
