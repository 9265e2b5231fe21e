import os
import sys
from pathlib import Path

import pytest

# Ensure the 'src' directory is on sys.path for imports in tests
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Tests assume the default algorithm regardless of the caller's environment
os.environ["BLOCKMERKLE_HASH_ALGORITHM"] = "sha256"


@pytest.fixture
def sha256_hasher():
    from blockmerkle.hashing import Sha256Hasher

    return Sha256Hasher()


@pytest.fixture
def hello_tree():
    from blockmerkle.merkle import MerkleTree

    return MerkleTree.build(["Hello World", "Hello World"])
