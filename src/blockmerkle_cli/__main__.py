from __future__ import annotations
import logging
from typing import List, Optional

import typer
from rich import print
from rich.markup import escape

from blockmerkle.hashing import default_hasher
from blockmerkle.logutil import setup_logging
from blockmerkle.merkle import MerkleTree
from blockmerkle.models import Block
from blockmerkle.prefilter import BloomFilter, Lookup, SetFilter, confirm_membership
from blockmerkle.settings import settings
from blockmerkle.utils import now_millis

app = typer.Typer(add_completion=False, no_args_is_help=True)

# Dummy transaction ids used by the demo command
DEMO_TRANSACTIONS = [
    "ebadfaa92f1fd29e2fe296eda702c48bd11ffd52313e986e99ddad9084062167",
    "6596fd070679de96e405d52b51b8e1d644029108ec4cbfe451454486796a1ecf",
    "b2affea89ff82557c60d635a2a3137b8f88f12ecec85082f7d0a1f82ee203ac4",
    "7dbc497969c7475e45d952c4a872e213fb15d45e5cd3473c386a71a1b0c136a1",
    "55ea01bd7e9afd3d3ab9790199e777d62a0709cf0725e80a7350fdb22d7b8ec6",
    "12b6a7934c1df821945ee9ee3b3326d07ca7a65fd6416ea44ce8c3db0c078c64",
    "7f42eda67921ee92eae5f79bd37c68c9cb859b899ce70dba68c48338857b7818",
]


def _hasher(algorithm: Optional[str]):
    try:
        return default_hasher(algorithm)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--algorithm") from e


@app.callback()
def main(
    log_level: str = typer.Option(None, help="Override BLOCKMERKLE_LOG_LEVEL"),
):
    level = (log_level or settings.log_level).upper()
    setup_logging(getattr(logging, level, logging.INFO))


@app.command()
def root(
    items: List[str] = typer.Argument(..., help="Items, hashed as UTF-8 text"),
    algorithm: str = typer.Option(None, help="Hash algorithm (default from settings)"),
):
    """Build a tree over ITEMS and print its root digest."""
    tree = MerkleTree.build(items, _hasher(algorithm))
    print(f"[cyan]Leaves[/cyan]: {tree.leaf_count}")
    print(f"[cyan]Root[/cyan]: {tree.root_hex}")


@app.command()
def verify(
    position: int = typer.Argument(..., help="Leaf position, starting at 0"),
    value: str = typer.Argument(..., help="Value expected at POSITION"),
    items: List[str] = typer.Argument(..., help="Items the tree is built from"),
    algorithm: str = typer.Option(None, help="Hash algorithm (default from settings)"),
):
    """Check VALUE against the leaf at POSITION of a tree built over ITEMS."""
    tree = MerkleTree.build(items, _hasher(algorithm))
    try:
        ok = tree.verify(position, value)
    except IndexError as e:
        raise typer.BadParameter(
            f"{e} (tree has {tree.leaf_count} leaves)", param_hint="POSITION"
        ) from e
    if not ok:
        print("[red]mismatch[/red]")
        raise typer.Exit(code=1)
    print("[green]valid[/green]")


@app.command()
def head(
    items: List[str] = typer.Argument(..., help="Items, hashed as UTF-8 text"),
    algorithm: str = typer.Option(None, help="Hash algorithm (default from settings)"),
):
    """Print the tree head (algorithm, size, root, leaves) as JSON."""
    tree = MerkleTree.build(items, _hasher(algorithm))
    typer.echo(tree.head().model_dump_json(indent=2))


@app.command()
def demo(
    search: str = typer.Option(DEMO_TRANSACTIONS[3], help="Transaction id to look up"),
    exact: bool = typer.Option(False, help="Use an exact set instead of a bloom filter"),
):
    """Walk through a block whose hash is the Merkle root of its transactions."""
    if exact:
        prefilter = SetFilter(DEMO_TRANSACTIONS)
    else:
        # sized from BLOCKMERKLE_PREFILTER_* (8 items, 0.5% false positives)
        prefilter = BloomFilter(DEMO_TRANSACTIONS)
    tree = MerkleTree.build(DEMO_TRANSACTIONS)

    block = Block(
        index=13,
        timestamp=now_millis(),
        prev_block_hash=bytes(32),
        hash=tree.root,
        payload="Genesis block!",
        nonce=0,
    )
    print(escape(repr(block)))

    result = confirm_membership(prefilter, tree, search)
    if result is Lookup.ABSENT:
        print("[yellow]Not in pre-filter[/yellow]")
        raise typer.Exit(code=1)
    print("Exists in pre-filter, checking the Merkle tree")
    if result is Lookup.FALSE_POSITIVE:
        print("[yellow]False positive in pre-filter; transaction not present[/yellow]")
        raise typer.Exit(code=1)

    # rebuild from leaves alone and compare against the block's recorded root
    rebuilt = MerkleTree.build_from_leaves(tree.leaves, tree.hasher.fresh())
    if rebuilt.root != block.hash:
        print("[red]Rebuilt root does not match block hash[/red]")
        raise typer.Exit(code=1)
    print("[green]Transaction exists in the tree[/green]")


if __name__ == "__main__":
    app()
