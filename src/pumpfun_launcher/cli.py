from __future__ import annotations

import argparse
import logging
from typing import Optional, Tuple

import httpx
from solders.keypair import Keypair

from .config import Settings
from .create_token import TokenCreator
from .errors import LauncherError
from .keys import load_keypair
from .metadata import TokenSpec
from .project_constants import (
    DEFAULT_POLL_INTERVAL_S,
    MAX_NAME_LENGTH,
    MAX_SYMBOL_LENGTH,
)
from .rpc import RpcClient
from .vanity import VanityRequest, VanityStatusClient, VanityWaiter, WaitOutcome

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_VANITY_TIMEOUT = 2
EXIT_INTERRUPTED = 130


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _positive_float(raw: str) -> float:
    value = float(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {raw}")
    return value


def token_spec_from_args(args: argparse.Namespace) -> TokenSpec:
    symbol = args.symbol.strip().upper()
    if not symbol:
        raise LauncherError("Symbol must not be empty.")
    if len(symbol.encode("utf-8")) > MAX_SYMBOL_LENGTH:
        raise LauncherError(
            f"Symbol '{args.symbol}' is too long. Maximum {MAX_SYMBOL_LENGTH} bytes allowed."
        )

    name = args.name or symbol
    if len(name.encode("utf-8")) > MAX_NAME_LENGTH:
        raise LauncherError(
            f"Token name '{name}' is too long. Maximum {MAX_NAME_LENGTH} bytes allowed."
        )

    return TokenSpec(
        name=name,
        symbol=symbol,
        description=args.description or symbol,
        image_path=args.image,
    )


def wait_for_mint(
    args: argparse.Namespace, settings: Settings, token: TokenSpec
) -> Tuple[int, Optional[Keypair]]:
    """Returns (exit code, vanity mint keypair or None)."""
    log = logging.getLogger("vanity")
    request = VanityRequest.for_symbol(token.symbol, job_id=args.vanity_job)
    wait_enabled = settings.vanity_enabled and not args.no_vanity

    if not settings.vanity_enabled:
        log.info("Vanity addresses disabled (VANITY_ENABLED=false).")
    elif args.no_vanity:
        log.info("--no-vanity specified. Launching without waiting for a vanity address...")
    else:
        log.info("Waiting for vanity address (job %s)...", request.job_id)
        log.info("You can use --no-vanity to launch without waiting for a vanity address")

    source = VanityStatusClient(settings.vanity_status_url)
    try:
        result = VanityWaiter(source).wait_for_vanity(
            request,
            wait_enabled=wait_enabled,
            poll_interval=args.poll_interval,
            timeout=args.vanity_timeout,
        )
    finally:
        source.close()

    if result.outcome is WaitOutcome.SKIPPED:
        return EXIT_OK, None

    if result.outcome is WaitOutcome.TIMED_OUT:
        log.error(
            "No vanity address after %.0fs. Rerun with --no-vanity to launch without one.",
            args.vanity_timeout,
        )
        return EXIT_VANITY_TIMEOUT, None

    status = result.status
    if not status.secret_key:
        raise LauncherError(
            f"Vanity address {status.address} is ready but the status source "
            "did not provide its secret key; it cannot sign as mint."
        )
    keypair = load_keypair(status.secret_key, label="vanity secret key")
    if str(keypair.pubkey()) != status.address:
        raise LauncherError(
            f"Vanity secret key does not match address {status.address}."
        )
    return EXIT_OK, keypair


def cmd_launch(args: argparse.Namespace) -> int:
    log = logging.getLogger("launch")
    token = token_spec_from_args(args)
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    payer = load_keypair(settings.private_key)

    log.info(
        "Creating token with symbol: %s, name: %s, description: %s",
        token.symbol,
        token.name,
        token.description,
    )

    rpc = RpcClient(settings.rpc_url, timeout_s=args.timeout)
    http = httpx.Client(timeout=args.timeout)
    try:
        creator = TokenCreator(
            rpc,
            payer,
            http,
            dry_run=settings.dry_run,
            confirm_timeout_s=args.timeout,
        )
        # An empty wallet must fail before a possibly unbounded vanity wait.
        log.info("Wallet : %s", creator.wallet_address)
        creator.check_balance()

        code, mint_keypair = wait_for_mint(args, settings, token)
        if code != EXIT_OK:
            return code

        log.info("Starting deployment%s...", " with vanity address" if mint_keypair else "")
        result = creator.create_token(token, mint_keypair)
    finally:
        http.close()
        rpc.close()

    print("========================================")
    if result.dry_run:
        print(f"🧪 DRY RUN: {token.symbol} signed, not sent")
    elif result.vanity:
        print(f"🚀 {token.symbol} deployed successfully with vanity address!")
    else:
        print(f"🚀 {token.symbol} deployed successfully!")
    print("========================================")
    print(f"Name        : {token.name}")
    print(f"Symbol      : {token.symbol}")
    print(f"Description : {token.description}")
    print(f"Contract    : {result.mint}")
    print(f"Transaction : {result.signature}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pumpfun-launcher",
        description="Launch a token on Pump.fun, optionally with a vanity mint address.",
    )
    p.add_argument("-s", "--symbol", required=True, help="Token symbol (ticker).")
    p.add_argument("-n", "--name", default=None, help="Token name (default: symbol).")
    p.add_argument(
        "-d", "--description", default=None, help="Token description (default: symbol)."
    )
    p.add_argument(
        "-i", "--image", default=None, help="Path to token image (default: data/image.png)."
    )
    p.add_argument(
        "--no-vanity",
        action="store_true",
        help="Don't wait for a vanity address (launch immediately).",
    )
    p.add_argument(
        "--vanity-job",
        default=None,
        help=(
            "Vanity generation job id to poll (default: the symbol). The status "
            "source is queried at VANITY_STATUS_URL/status/<job> and must answer "
            'JSON like {"status": "pending"} or {"status": "ready", '
            '"address": "...", "secret_key": "<base58>"}.'
        ),
    )
    p.add_argument(
        "--poll-interval",
        type=_positive_float,
        default=DEFAULT_POLL_INTERVAL_S,
        help="Seconds between vanity status checks.",
    )
    p.add_argument(
        "--vanity-timeout",
        type=_positive_float,
        default=None,
        help="Give up waiting for the vanity address after this many seconds.",
    )
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="RPC/HTTP timeout seconds.")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.set_defaults(func=cmd_launch)
    return p


def run(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    log = logging.getLogger("launch")
    try:
        return args.func(args)
    except LauncherError as e:
        log.error("Failed to create token: %s", e)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        log.error("Interrupted.")
        return EXIT_INTERRUPTED


def main() -> None:
    raise SystemExit(run())
