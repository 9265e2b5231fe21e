"""Fuzz harness for Merkle tree construction, reconstruction & verification."""
from __future__ import annotations
import atheris
import sys

with atheris.instrument_imports():
    from blockmerkle.hashing import DoubleSha256Hasher, Sha256Hasher
    from blockmerkle.merkle import MerkleTree


def TestOneInput(data: bytes):  # noqa: N802
    if len(data) < 2:
        return
    # Split data deterministically into items (bounded count)
    size = max(1, min(32, data[0]))
    items = [data[i : i + size] for i in range(1, min(len(data), 1 + size * 64), size)]
    if not items:
        return
    hasher = DoubleSha256Hasher() if data[0] & 0x80 else Sha256Hasher()
    tree = MerkleTree.build(items, hasher)

    rebuilt = MerkleTree.build_from_leaves(tree.leaves, hasher.fresh())
    if rebuilt.root != tree.root:
        raise RuntimeError("rebuilding from leaves changed the root")

    idx = data[-1] % len(items)
    if not tree.verify(idx, items[idx]):
        raise RuntimeError("valid item failed verification")
    tampered = bytes([items[idx][0] ^ 0x01]) + items[idx][1:]
    if tree.verify(idx, tampered):
        raise RuntimeError("tampered item unexpectedly verified")
    try:
        tree.verify(len(items), items[idx])
    except IndexError:
        pass
    else:
        raise RuntimeError("out-of-range position did not raise")


def main():
    atheris.Setup(sys.argv, TestOneInput, enable_python_coverage=True)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
