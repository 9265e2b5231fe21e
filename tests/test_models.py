import hashlib
import json

import pytest
from pydantic import ValidationError

from blockmerkle.hashing import DoubleSha256Hasher, Hashing
from blockmerkle.merkle import MerkleTree
from blockmerkle.models import Block, TreeHead


def _block(**kw):
    base = dict(
        index=13,
        timestamp=1_700_000_000_123,
        prev_block_hash=bytes(32),
        hash=bytes.fromhex("ab" * 32),
        payload="Genesis block!",
        nonce=0,
    )
    base.update(kw)
    return Block(**base)


def test_block_repr():
    b = _block()
    assert repr(b) == f"Block[13]: {'ab' * 32} at: 1700000000123 with: Genesis block!"
    assert str(b) == repr(b)


def test_block_to_bytes_layout():
    b = _block(nonce=7)
    raw = b.to_bytes()
    assert raw[:4] == (13).to_bytes(4, "little")
    assert raw[4:20] == (1_700_000_000_123).to_bytes(16, "little")
    assert raw[20:52] == bytes(32)
    assert raw[52:60] == (7).to_bytes(8, "little")
    assert raw[60:] == b"Genesis block!"
    assert bytes(b) == raw


def test_block_digest():
    b = _block()
    assert b.digest() == hashlib.sha256(b.to_bytes()).digest()
    assert b.digest(DoubleSha256Hasher()) == hashlib.sha256(
        hashlib.sha256(b.to_bytes()).digest()
    ).digest()


def test_block_carries_merkle_root():
    tree = MerkleTree.build(["tx1", "tx2", "tx3"])
    b = _block(hash=tree.root)
    assert b.hash == tree.root
    # blocks are themselves valid tree items
    assert MerkleTree.build([b]).verify(0, b)


@pytest.mark.parametrize(
    "field,value",
    [("index", 2**32), ("index", -1), ("nonce", 2**64), ("timestamp", -5)],
)
def test_block_rejects_out_of_range(field, value):
    with pytest.raises(ValidationError):
        _block(**{field: value})


def test_block_is_frozen():
    b = _block()
    with pytest.raises(ValidationError):
        b.index = 14


def test_tree_head_size_must_match():
    with pytest.raises(ValidationError):
        TreeHead(algorithm="sha256", tree_size=2, root_hex="00", leaves_hex=["00"])
    with pytest.raises(ValidationError):
        TreeHead(algorithm="sha256", tree_size=0, root_hex="00", leaves_hex=[])


def test_tree_head_json_round_trip():
    head = MerkleTree.build(["a", "b", "c"]).head()
    again = TreeHead.model_validate_json(head.model_dump_json())
    assert again == head
    assert MerkleTree.from_head(again).root_hex == head.root_hex


def test_block_json_round_trip_with_merkle_root():
    tree = MerkleTree.build(["tx1", "tx2", "tx3"])
    b = Block(index=1, timestamp=1, prev_block_hash=bytes(32), hash=tree.root)
    raw = b.model_dump_json()
    assert json.loads(raw)["hash"] == tree.root_hex
    assert json.loads(raw)["prev_block_hash"] == "00" * 32
    again = Block.model_validate_json(raw)
    assert again == b
    assert again.hash == tree.root


def test_hashing_requires_to_bytes():
    class NoBytes(Hashing):
        pass

    with pytest.raises(TypeError):
        NoBytes()
