"""CLI entrypoint for safe-helper."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, Any, Coroutine, TypeVar

import typer

from .domain import DelegateConfig, Operation, TransactionDraft
from .exceptions import SafeHelperError
from .formatter import (
    format_delegates,
    format_onchain_result,
    format_pending_transactions,
    format_safe_info,
)
from .helper import SafeHelper
from .logger import setup_logging
from .settings import SafeHelperSettings
from .state import AppState

T = TypeVar("T")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Propose, approve and execute Safe multisig transactions.",
)
delegates_app = typer.Typer(no_args_is_help=True, help="Manage Safe delegates.")
tx_app = typer.Typer(no_args_is_help=True, help="Safe transaction lifecycle.")
app.add_typer(delegates_app, name="delegates")
app.add_typer(tx_app, name="tx")


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("safe_helper")


def _state(ctx: typer.Context) -> AppState:
    return ctx.obj


def _run(state: AppState, coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro``, turning helper errors into a logged exit code 1."""
    try:
        return asyncio.run(coro)
    except SafeHelperError as e:
        state.logger.error(f"❌ Error: {e}")
        raise typer.Exit(code=1) from e


@app.callback()
def main(
    ctx: typer.Context,
    safe_address: Annotated[
        str | None,
        typer.Option(
            "--safe-address",
            "-s",
            help="Safe contract address (or SAFE_HELPER_SAFE_ADDRESS).",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [safe_helper] table).",
        ),
    ] = None,
    testing: Annotated[
        bool | None,
        typer.Option(
            "--testing/--production",
            help="Use test-network (sepolia) defaults for RPC and service URLs.",
        ),
    ] = None,
    provider_url: Annotated[
        str | None,
        typer.Option("--provider-url", help="RPC endpoint; overrides the default."),
    ] = None,
    tx_service_url: Annotated[
        str | None,
        typer.Option(
            "--tx-service-url",
            help="Safe Transaction Service URL; overrides the default.",
        ),
    ] = None,
    key: Annotated[
        str | None,
        typer.Option(
            "--key",
            "-k",
            envvar="SAFE_HELPER_KEY",
            help="Private key used when a command does not take its own key.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
):
    """Load configuration and bind a helper to the Safe."""
    if config_path:
        os.environ["SAFE_HELPER_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if safe_address is not None:
        init_kwargs["safe_address"] = safe_address
    if testing is not None:
        init_kwargs["testing"] = testing
    if provider_url is not None:
        init_kwargs["provider_url"] = provider_url
    if tx_service_url is not None:
        init_kwargs["tx_service_url"] = tx_service_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = SafeHelperSettings(**init_kwargs)
    setup_logging(settings.log_level)
    logger = _build_logger()

    if ctx.invoked_subcommand == "show-config":
        ctx.obj = settings
        return

    if not settings.safe_address:
        raise typer.BadParameter(
            "safe_address must be configured",
            param_hint=["--safe-address", "SAFE_HELPER_SAFE_ADDRESS"],
        )

    helper = SafeHelper(settings.safe_address, settings)
    ctx.obj = AppState(settings=settings, logger=logger, helper=helper, key=key)


@app.command("show-config")
def show_config(ctx: typer.Context):
    """Print effective config (with secrets redacted) and exit."""
    settings: SafeHelperSettings = ctx.obj
    typer.echo(json.dumps(settings.as_safe_dict(), indent=2, default=str))


@app.command()
def info(ctx: typer.Context):
    """Show owners, threshold and nonce read from the chain."""
    state = _state(ctx)
    format_safe_info(_run(state, state.helper.get_safe_info(state.key)))


@delegates_app.command("list")
def delegates_list(ctx: typer.Context):
    """List delegates registered for the Safe."""
    state = _state(ctx)
    format_delegates(_run(state, state.helper.list_delegates()))


@delegates_app.command("add")
def delegates_add(
    ctx: typer.Context,
    delegate: Annotated[str, typer.Argument(help="Delegate address.")],
    label: Annotated[str, typer.Option("--label", "-l", help="Delegate label.")],
):
    """Register a delegate, authorized by the owner key."""
    state = _state(ctx)
    record = _run(
        state,
        state.helper.add_delegate(DelegateConfig(delegate=delegate, label=label), state.key),
    )
    typer.echo(json.dumps(record.to_dict(), indent=2))


@delegates_app.command("remove")
def delegates_remove(
    ctx: typer.Context,
    delegate: Annotated[str, typer.Argument(help="Delegate address.")],
):
    """Remove one delegate."""
    state = _state(ctx)
    _run(state, state.helper.remove_delegate(delegate, state.key))
    state.logger.info("Delegate %s removed", delegate)


@delegates_app.command("remove-all")
def delegates_remove_all(ctx: typer.Context):
    """Remove every delegate of the Safe."""
    state = _state(ctx)
    _run(state, state.helper.remove_all_delegates(state.key))


@tx_app.command("pending")
def tx_pending(ctx: typer.Context):
    """List transactions waiting for approval or execution."""
    state = _state(ctx)
    format_pending_transactions(
        _run(state, state.helper.list_pending_transactions(state.key))
    )


@tx_app.command("propose")
def tx_propose(
    ctx: typer.Context,
    to: Annotated[str, typer.Option("--to", help="Destination address.")],
    value: Annotated[int, typer.Option("--value", help="Value in wei.")] = 0,
    data: Annotated[str, typer.Option("--data", help="Hex call data.")] = "0x",
    delegate_call: Annotated[
        bool,
        typer.Option("--delegate-call/--call", help="Operation type."),
    ] = False,
    origin: Annotated[
        str | None, typer.Option("--origin", help="Origin tag sent to the service.")
    ] = None,
    proposer_key: Annotated[
        str | None,
        typer.Option(
            "--proposer-key",
            envvar="SAFE_HELPER_PROPOSER_KEY",
            help="Key whose address submits the proposal (defaults to --key).",
        ),
    ] = None,
):
    """Create, sign and propose a transaction."""
    state = _state(ctx)
    draft = TransactionDraft(
        to=to,
        value=value,
        data=data,
        operation=Operation.DELEGATE_CALL if delegate_call else Operation.CALL,
    )
    safe_tx_hash = _run(
        state,
        state.helper.create_and_propose_signed_transaction(
            draft, origin=origin, creator_key=state.key, proposer_key=proposer_key
        ),
    )
    typer.echo(safe_tx_hash)
    state.logger.info("Approve here: %s", state.helper.get_safe_ui_url(safe_tx_hash))


@tx_app.command("reject")
def tx_reject(
    ctx: typer.Context,
    safe_tx_hash: Annotated[str, typer.Argument(help="Hash of the pending transaction.")],
    propose: Annotated[
        bool,
        typer.Option("--propose/--no-propose", help="Sign and propose the rejection."),
    ] = False,
    origin: Annotated[
        str | None, typer.Option("--origin", help="Origin tag sent to the service.")
    ] = None,
):
    """Build a same-nonce rejection for a pending transaction."""
    state = _state(ctx)
    helper = state.helper

    async def _reject() -> str:
        rejection = await helper.create_rejection(safe_tx_hash, state.key)
        if not propose:
            return rejection.safe_tx_hash
        rejection.sign(helper.resolve_signer(state.key))
        return await helper.propose_transaction(rejection, origin=origin, key=state.key)

    typer.echo(_run(state, _reject()))


@tx_app.command("approve")
def tx_approve(
    ctx: typer.Context,
    safe_tx_hash: Annotated[str, typer.Argument(help="Safe transaction hash.")],
):
    """Approve a transaction hash on-chain."""
    state = _state(ctx)
    format_onchain_result(
        "Approval", _run(state, state.helper.approve_transaction(safe_tx_hash, state.key))
    )


@tx_app.command("execute")
def tx_execute(
    ctx: typer.Context,
    safe_tx_hash: Annotated[str, typer.Argument(help="Safe transaction hash.")],
):
    """Execute a pending transaction once enough owners approved it."""
    state = _state(ctx)
    format_onchain_result(
        "Execution", _run(state, state.helper.execute_transaction(safe_tx_hash, state.key))
    )


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
