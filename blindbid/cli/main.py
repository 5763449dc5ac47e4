"""
BlindBid CLI - Command Line Interface for the sealed-bid auction engine.

Main entry point for all CLI commands.
"""

import logging
from pathlib import Path

import click

from blindbid.utils.logger import BlindBidLogger, setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (default: BLINDBID_DATA_DIR or ./data)")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir):
    """BlindBid - sealed-bid (commit-reveal) auction engine"""
    from blindbid.core.config import load_config

    config = load_config()
    level = logging.DEBUG if debug else config.log_level_number
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)
    ctx.call_on_close(BlindBidLogger.reset)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["data_dir"] = Path(data_dir).expanduser() if data_dir else config.data_dir


# =============================================================================
# Commitment Command
# =============================================================================


@cli.command("commit")
@click.option("--value", required=True, type=int, help="True bid value")
@click.option("--fake/--real", default=False, help="Mark the bid as a decoy")
@click.option("--secret", default=None, help="Blinding secret (hex); random when omitted")
@click.pass_context
def commit(ctx, value, fake, secret):
    """Compute the commitment hash for a bid"""
    from blindbid.core.auction import compute_commitment
    from blindbid.crypto import bytes_to_hex, hex_to_bytes, random_secret
    from blindbid.utils.validation import validate_amount, validate_hex_string, validate_secret

    valid, err = validate_amount(value, "value")
    if not valid:
        raise click.BadParameter(err, param_hint="--value")

    if secret is None:
        secret_bytes = random_secret()
    else:
        valid, err = validate_hex_string(secret, "secret")
        if not valid:
            raise click.BadParameter(err, param_hint="--secret")
        secret_bytes = hex_to_bytes(secret)
        valid, err = validate_secret(secret_bytes, ctx.obj["config"].max_secret_size)
        if not valid:
            raise click.BadParameter(err, param_hint="--secret")

    commitment = compute_commitment(value, fake, secret_bytes)

    click.echo(f"Commitment: {bytes_to_hex(commitment)}")
    click.echo(f"  Value:  {value}")
    click.echo(f"  Decoy:  {'yes' if fake else 'no'}")
    click.echo(f"  Secret: {bytes_to_hex(secret_bytes)}")
    click.echo("  Keep value, decoy flag and secret private until the reveal phase.")


# =============================================================================
# Demo Command
# =============================================================================


class _DemoClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@cli.command("demo")
@click.option("--persist", is_flag=True, help="Save the demo auction under --data-dir")
@click.pass_context
def demo(ctx, persist):
    """Run a scripted auction from bidding to settlement"""
    from blindbid.core.auction import BlindAuction, AuctionEnded, create_sealed_bid
    from blindbid.core.config import AuctionConfig
    from blindbid.core.payments import InMemoryBank
    from blindbid.core.storage import StorageManager
    from blindbid.crypto import generate_keypair, short_hex

    click.echo("=" * 60)
    click.echo("  BLINDBID - SEALED-BID AUCTION DEMO")
    click.echo("=" * 60)
    click.echo()

    alice = generate_keypair().address
    bob = generate_keypair().address
    beneficiary = generate_keypair().address

    clock = _DemoClock()
    bank = InMemoryBank()
    storage = None
    if persist:
        data_dir = ctx.obj["data_dir"]
        data_dir.mkdir(parents=True, exist_ok=True)
        # Each demo run starts a fresh auction
        for suffix in ("", "-wal", "-shm"):
            (data_dir / f"auction.db{suffix}").unlink(missing_ok=True)
        storage = StorageManager(data_dir)

    auction = BlindAuction(
        beneficiary=beneficiary,
        transfers=bank,
        clock=clock,
        config=AuctionConfig(bidding_time=100, reveal_time=100),
        start=0,
        storage=storage,
    )
    auction.subscribe(
        lambda e: click.echo(f"  >> AuctionEnded winner={short_hex(e.winner)} amount={e.amount}"),
        AuctionEnded,
    )

    click.echo("Bidding phase...")
    bob_bid = create_sealed_bid(value=3000, escrow=3000)
    alice_decoy = create_sealed_bid(value=2000, fake=True, escrow=3000)
    alice_real = create_sealed_bid(value=3100, escrow=3500)

    auction.place_bid(bob, bob_bid.commitment, bob_bid.escrow)
    auction.place_bid(alice, alice_decoy.commitment, alice_decoy.escrow)
    auction.place_bid(alice, alice_real.commitment, alice_real.escrow)
    click.echo(f"  Bob:   1 bid,  escrow {bob_bid.escrow}")
    click.echo(f"  Alice: 2 bids, escrow {alice_decoy.escrow} (decoy) + {alice_real.escrow}")
    click.echo()

    clock.now = 150
    click.echo("Reveal phase...")
    refund = auction.reveal(bob, [bob_bid.value], [bob_bid.fake], [bob_bid.secret])
    click.echo(f"  Bob reveals {bob_bid.value}: refunded {refund}, highest={auction.highest_bid}")

    bids = [alice_decoy, alice_real]
    refund = auction.reveal(
        alice,
        [b.value for b in bids],
        [b.fake for b in bids],
        [b.secret for b in bids],
    )
    click.echo(f"  Alice reveals decoy + {alice_real.value}: refunded {refund}, highest={auction.highest_bid}")
    click.echo(f"  Bob pending returns: {auction.pending_returns(bob)}")
    click.echo()

    clock.now = 250
    click.echo("Settlement...")
    click.echo(f"  Bob withdraws {auction.withdraw(bob)}")
    auction.finalize()
    click.echo(f"  Beneficiary received {bank.paid_to(beneficiary)}")
    click.echo()

    audit = auction.audit()
    click.echo("Final Statistics:")
    click.echo(f"  Deposited: {audit['deposited']}, paid out: {audit['paid_out']}")
    click.echo(f"  Funds balanced: {audit['balanced']}")
    if storage is not None:
        click.echo(f"  Saved to: {storage.db_path}")
        storage.close()
    click.echo()
    click.echo("Demo complete!")


# =============================================================================
# Show Command
# =============================================================================


@cli.command("show")
@click.option("--db-name", default="auction.db", help="Database file inside --data-dir")
@click.pass_context
def show(ctx, db_name):
    """Show a persisted auction"""
    from blindbid.core.auction import AuctionState
    from blindbid.core.storage import StorageManager
    from blindbid.crypto import bytes_to_hex

    db_path = ctx.obj["data_dir"] / db_name
    if not db_path.exists():
        click.echo(f"No auction found at {db_path}")
        click.echo("   Create one with: blindbid demo --persist")
        ctx.exit(1)

    storage = StorageManager(ctx.obj["data_dir"], db_name=db_name)
    saved = storage.load_auction()
    storage.close()
    if saved is None:
        click.echo(f"No auction found at {db_path}")
        ctx.exit(1)

    state = AuctionState.from_snapshot(saved["state"])
    bidder = state.record.highest_bidder

    click.echo("Auction State")
    click.echo("-" * 40)
    click.echo(f"  Beneficiary:    {bytes_to_hex(saved['beneficiary'])}")
    click.echo(f"  Bidding end:    {saved['bidding_end']}")
    click.echo(f"  Reveal end:     {saved['reveal_end']}")
    click.echo(f"  Highest bid:    {state.record.highest_bid}")
    click.echo(f"  Highest bidder: {bytes_to_hex(bidder) if bidder else '-'}")
    click.echo(f"  Ended:          {state.record.ended}")
    click.echo("")
    click.echo(f"  Bids: {len(state.ledger)}")
    for participant, index, bid in state.ledger:
        status = "revealed" if bid.consumed else "sealed"
        click.echo(f"    {bytes_to_hex(participant)[:12]}... #{index} escrow={bid.escrowed_amount} ({status})")
    click.echo(f"  Pending returns: {state.pending.total()} across {len(state.pending)} participants")


if __name__ == "__main__":
    cli()
