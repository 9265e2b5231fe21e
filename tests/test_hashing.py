import hashlib

import pytest

from blockmerkle.hashing import (
    DoubleSha256Hasher,
    HashlibHasher,
    Sha256Hasher,
    as_bytes,
    default_hasher,
)


def test_sha256_hasher_properties(sha256_hasher):
    assert sha256_hasher.output_bits == 256
    assert sha256_hasher.digest_size == 32
    assert sha256_hasher.block_size == 64
    assert sha256_hasher.name == "sha256"


def test_absorb_in_pieces_matches_hashlib(sha256_hasher):
    sha256_hasher.reset()
    sha256_hasher.absorb(b"Hello ")
    sha256_hasher.absorb(b"World")
    assert sha256_hasher.finalize() == hashlib.sha256(b"Hello World").digest()


def test_reuse_requires_reset(sha256_hasher):
    sha256_hasher.reset()
    sha256_hasher.absorb(b"x")
    sha256_hasher.finalize()
    with pytest.raises(RuntimeError):
        sha256_hasher.absorb(b"y")
    with pytest.raises(RuntimeError):
        sha256_hasher.finalize()
    sha256_hasher.reset()
    sha256_hasher.absorb(b"y")
    assert sha256_hasher.finalize() == hashlib.sha256(b"y").digest()


def test_finalize_into_buffer(sha256_hasher):
    sha256_hasher.reset()
    sha256_hasher.absorb(b"abc")
    out = bytearray(32)
    sha256_hasher.finalize_into(out)
    assert bytes(out) == hashlib.sha256(b"abc").digest()


def test_finalize_into_wrong_size(sha256_hasher):
    sha256_hasher.reset()
    with pytest.raises(ValueError):
        sha256_hasher.finalize_into(bytearray(16))


def test_double_sha256():
    h = DoubleSha256Hasher()
    h.reset()
    h.absorb(b"abc")
    assert h.finalize() == hashlib.sha256(hashlib.sha256(b"abc").digest()).digest()
    assert h.name == "sha256d"
    assert isinstance(h.fresh(), DoubleSha256Hasher)


def test_hashlib_hasher_other_algorithms():
    h = HashlibHasher("sha512")
    assert h.output_bits == 512
    assert h.block_size == 128
    assert h.fresh().name == "sha512"


@pytest.mark.parametrize("name", ["not-a-hash", "shake_128"])
def test_hashlib_hasher_rejects(name):
    with pytest.raises(ValueError):
        HashlibHasher(name)


def test_default_hasher_follows_settings(monkeypatch):
    from blockmerkle.settings import settings

    assert isinstance(default_hasher(), Sha256Hasher)
    monkeypatch.setattr(settings, "hash_algorithm", "sha256d")
    assert isinstance(default_hasher(), DoubleSha256Hasher)
    monkeypatch.setattr(settings, "hash_algorithm", "sha3_256")
    assert default_hasher().name == "sha3_256"
    assert default_hasher("sha256").name == "sha256"


def test_as_bytes():
    assert as_bytes("héllo") == "héllo".encode("utf-8")
    assert as_bytes(b"raw") == b"raw"
    assert as_bytes(bytearray(b"ba")) == b"ba"
    assert as_bytes(memoryview(b"mv")) == b"mv"

    class Custom:
        def __bytes__(self):
            return b"custom"

    assert as_bytes(Custom()) == b"custom"
    for bad in (5, True, 1.5, None, object()):
        with pytest.raises(TypeError):
            as_bytes(bad)
