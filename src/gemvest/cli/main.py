#!/usr/bin/env python3
"""
Gemvest CLI

Command-line interface for inspecting the vesting schedule, running an
in-process simulation of the staking flow and serving the read-only API.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gemvest import __version__
from gemvest.core.api_blueprints import create_app
from gemvest.core.config import Config
from gemvest.core.constants import (
    BASE_BERA_DAILY_UNLOCK,
    BASE_BERA_INITIAL_UNLOCK,
    ONE_TOKEN,
    SECONDS_PER_DAY,
    TOTAL_BERAS,
    UNIQUE_BERA_ALLOC_RATIO,
    UNIQUE_BERA_IDS,
    VESTING_PERIOD_IN_DAYS,
    VESTING_POOL_TOTAL,
)
from gemvest.core.contracts import ERC20Token
from gemvest.core.defi import VestingLedger
from gemvest.core.exceptions import ContractError
from gemvest.core.logging_config import setup_from_config, setup_logging
from gemvest.simulation import SimulatedClock, deploy

# Configure module logger
logger = logging.getLogger(__name__)

console = Console()

DEFAULT_STAKER = "0x" + "11" * 20


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _fmt_tokens(amount: int) -> str:
    """Render a base-unit amount as whole tokens with two decimals."""
    cents = (amount % ONE_TOKEN) * 100 // ONE_TOKEN
    return f"{amount // ONE_TOKEN:,}.{cents:02d}"


def _emit(ctx: click.Context, payload: Dict[str, Any], title: str) -> None:
    """Emit a flat payload honoring the global --json-output flag."""
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(payload, indent=2))
        return

    table = Table(show_header=False, box=box.ROUNDED, title=title)
    for key, value in payload.items():
        table.add_row(f"[bold cyan]{key.replace('_', ' ').title()}[/]", str(value))
    console.print(Panel(table, border_style="cyan"))


# ============================================================================
# CLI Group
# ============================================================================

@click.group()
@click.option('--json-output', is_flag=True, help='Output raw JSON')
@click.option('-v', '--verbose', is_flag=True, help='Log at the configured level instead of WARNING')
@click.version_option(__version__, prog_name="gemvest")
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool):
    """
    Gemvest - NFT staking reward vesting

    Inspect the vesting schedule, simulate stake/collect/unstake flows
    against an in-process deployment, and serve the read-only API.
    """
    ctx.ensure_object(dict)
    ctx.obj['json_output'] = json_output

    setup_logging(
        name="gemvest",
        log_file=Config.LOG_FILE,
        level=Config.LOG_LEVEL if verbose else "WARNING",
        environment=Config.ENVIRONMENT,
        json_format=Config.LOG_JSON,
    )


@cli.command("constants")
@click.pass_context
def show_constants(ctx: click.Context):
    """Show the vesting schedule figures."""
    payload = {
        "total_beras": TOTAL_BERAS,
        "unique_beras": len(UNIQUE_BERA_IDS),
        "unique_bera_alloc_ratio": UNIQUE_BERA_ALLOC_RATIO,
        "vesting_period_in_days": VESTING_PERIOD_IN_DAYS,
        "seconds_per_day": SECONDS_PER_DAY,
        "base_bera_initial_unlock": str(BASE_BERA_INITIAL_UNLOCK),
        "base_bera_daily_unlock": str(BASE_BERA_DAILY_UNLOCK),
        "vesting_pool_total": str(VESTING_POOL_TOTAL),
    }
    if not ctx.obj.get("json_output"):
        for key in ("base_bera_initial_unlock", "base_bera_daily_unlock", "vesting_pool_total"):
            payload[key] = _fmt_tokens(int(payload[key]))
        payload["unique_bera_ids"] = ", ".join(str(i) for i in sorted(UNIQUE_BERA_IDS))
    else:
        payload["unique_bera_ids"] = sorted(UNIQUE_BERA_IDS)
    _emit(ctx, payload, "Vesting Schedule")


@cli.command("simulate")
@click.option(
    '--token-id', 'token_ids',
    type=click.IntRange(0, TOTAL_BERAS - 1),
    multiple=True,
    help='Token id to stake (repeatable). Defaults to 0 and 931.',
)
@click.option('--days', type=click.FloatRange(0), default=30.0, show_default=True,
              help='Days to advance the clock after staking')
@click.option('--staker', default=DEFAULT_STAKER, show_default=True, help='Staker address')
@click.option('--keep-staked', is_flag=True, help='Skip the final unstake')
@click.option('--save', is_flag=True, help='Write ledger state to --state-file')
@click.option(
    '--state-file',
    type=click.Path(dir_okay=False, path_type=Path),
    default=lambda: Config.STATE_FILE,
    show_default="GEMVEST_STATE_FILE",
    help='Where --save writes the ledger state',
)
@click.pass_context
def simulate(
    ctx: click.Context,
    token_ids: Tuple[int, ...],
    days: float,
    staker: str,
    keep_staked: bool,
    save: bool,
    state_file: Path,
):
    """
    Deploy the system in-process, stake, advance time and collect.

    Example:
        gemvest simulate --token-id 931 --days 30
    """
    if not Config.ALLOW_TIME_TRAVEL:
        _cli_fail(click.ClickException("Simulation is disabled on this network"))

    ids = sorted(set(token_ids or (0, 931)))
    staker = staker.lower()

    try:
        clock = SimulatedClock()
        deployment = deploy(admin=Config.ADMIN_ADDRESS, clock=clock)
        ledger = deployment.ledger

        deployment.mint_beras(staker, ids[-1] + 1)
        deployment.stake(staker, ids)
        balance_after_stake = deployment.token.balance_of(staker)

        clock.advance_days(days)
        pending = ledger.pending_rewards_batch(ids)

        if not keep_staked:
            deployment.unstake_all(staker)
        final_balance = deployment.token.balance_of(staker)
    except ContractError as exc:
        _cli_fail(exc)
        return

    logger.info(
        "Simulation complete",
        extra={
            "event": "cli.simulate",
            "token_ids": ids,
            "days": days,
            "final_balance": final_balance,
        },
    )

    rows: List[Dict[str, Any]] = [
        {
            "token_id": token_id,
            "multiplier": ledger.allocation_multiplier(token_id),
            "pending": str(amount),
            "days_collected": ledger.vesting_state(token_id).days_collected,
        }
        for token_id, amount in zip(ids, pending)
    ]
    payload: Dict[str, Any] = {
        "staker": staker,
        "days": days,
        "tokens": rows,
        "balance_after_stake": str(balance_after_stake),
        "final_balance": str(final_balance),
        "pool_balance": str(ledger.pool_balance()),
    }

    if save:
        state_file.parent.mkdir(parents=True, exist_ok=True)
        state = {
            "admin": deployment.admin,
            "clock": clock.now,
            "custody": deployment.custody.address,
            "token": deployment.token.to_dict(),
            "ledger": ledger.to_dict(),
        }
        state_file.write_text(json.dumps(state, indent=2))
        payload["state_file"] = str(state_file)

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(payload, indent=2))
        return

    table = Table(title=f"Vesting after {days:g} days", box=box.SIMPLE)
    table.add_column("Token", justify="right")
    table.add_column("Multiplier", justify="right")
    table.add_column("Pending", justify="right")
    table.add_column("Days Collected", justify="right")
    for row in rows:
        table.add_row(
            str(row["token_id"]),
            f"x{row['multiplier']}",
            _fmt_tokens(int(row["pending"])),
            str(row["days_collected"]),
        )
    console.print(table)

    summary = Table(show_header=False, box=box.ROUNDED)
    summary.add_row("[bold cyan]Staker", staker)
    summary.add_row("[bold cyan]Balance After Stake", _fmt_tokens(balance_after_stake))
    summary.add_row("[bold green]Final Balance", _fmt_tokens(final_balance))
    summary.add_row("[bold cyan]Pool Balance", _fmt_tokens(ledger.pool_balance()))
    if save:
        summary.add_row("[bold cyan]State File", str(state_file))
    console.print(Panel(summary, title="[bold green]Simulation", border_style="green"))


def _load_ledger(state_file: Path) -> VestingLedger:
    """Rebuild a ledger saved by ``simulate --save``.

    The ledger resumes on the simulated clock it was saved with; state files
    without a clock fall back to wall-clock time.
    """
    data = json.loads(state_file.read_text())
    token = ERC20Token.from_dict(data["token"])
    clock = SimulatedClock(int(data["clock"])) if "clock" in data else None
    return VestingLedger.from_dict(
        data["ledger"],
        token=token,
        staking_contract=data["custody"],
        admin=data["admin"],
        time_provider=clock,
        strict_exit_claimant=Config.STRICT_EXIT_CLAIMANT,
    )


@cli.command("serve")
@click.option('--host', default=lambda: Config.API_HOST, show_default="GEMVEST_API_HOST")
@click.option('--port', type=int, default=lambda: Config.API_PORT, show_default="GEMVEST_API_PORT")
@click.option(
    '--state-file',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Serve a ledger saved by `simulate --save` instead of a fresh deployment',
)
def serve(host: str, port: int, state_file: Optional[Path]):
    """Serve the read-only vesting API."""
    setup_from_config(Config)

    try:
        if state_file:
            ledger = _load_ledger(state_file)
        else:
            ledger = deploy(admin=Config.ADMIN_ADDRESS).ledger
    except (ContractError, KeyError, ValueError) as exc:
        _cli_fail(exc)
        return

    app = create_app(ledger)
    logger.info(
        "Starting vesting API",
        extra={"event": "cli.serve", "host": host, "port": port},
    )
    app.run(host=host, port=port)


def main():
    """Main CLI entry point"""
    return cli(obj={})


if __name__ == "__main__":
    sys.exit(main() or 0)
