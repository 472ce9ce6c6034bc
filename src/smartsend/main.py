"""Command-line entry point.

Usage:
    python -m smartsend status
    python -m smartsend watch --seconds 30
    python -m smartsend send --to 0x... --amount 10.50

Environment variables:
    DRY_RUN: Use simulated collaborators (default: true)
    TURNKEY_API_PUBLIC_KEY / TURNKEY_API_PRIVATE_KEY: Turnkey API key pair
    ENCLAVE_API_KEY: Enclave relay API key
"""

import argparse
import asyncio
import logging
import sys

from smartsend.config import get_settings
from smartsend.errors import IdentityUnavailable, TransferError
from smartsend.factory import get_key_provider, get_relay
from smartsend.session import TransferSession

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_REAUTH = 2


def print_wallet_info(session: TransferSession) -> None:
    state = session.state
    print(f"Custodial wallet address:      {state.identity.custodial_address}")
    print(f"Smart account address:         {state.smart_account.smart_account_address}")
    print(f"Smart account balance:         {session.display_balance()}")


async def cmd_status(session: TransferSession, args: argparse.Namespace) -> int:
    await session.bootstrap(start_polling=False)
    print_wallet_info(session)
    return EXIT_OK


async def cmd_watch(session: TransferSession, args: argparse.Namespace) -> int:
    last = None

    def on_update(balance) -> None:
        nonlocal last
        if balance != last:
            print(f"Balance: {session.display_balance()}")
            last = balance

    session.poller.on_update = on_update
    await session.bootstrap()
    print_wallet_info(session)
    await asyncio.sleep(args.seconds)
    return EXIT_OK


async def cmd_send(session: TransferSession, args: argparse.Namespace) -> int:
    await session.bootstrap(start_polling=False)
    print_wallet_info(session)

    attempt = await session.transfer(args.to, args.amount)
    if attempt.succeeded:
        print(f"Transaction successful! Hash: {attempt.result.transaction_hash}")
        return EXIT_OK

    print(session.state.transfer_error or "Transfer failed.", file=sys.stderr)
    return EXIT_FAILED


COMMANDS = {
    "status": cmd_status,
    "watch": cmd_watch,
    "send": cmd_send,
}


async def run(args: argparse.Namespace) -> int:
    session = TransferSession(get_key_provider(), get_relay())
    async with session:
        try:
            return await COMMANDS[args.command](session, args)
        except IdentityUnavailable as e:
            logger.warning(f"Identity unavailable: {e}")
            print(e.user_message, file=sys.stderr)
            return EXIT_REAUTH
        except TransferError as e:
            logger.error(f"{e.code}: {e}")
            print(e.user_message, file=sys.stderr)
            return EXIT_FAILED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="smartsend", description="Custodial smart-account transfers")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show custodial wallet, smart account and balance")

    watch = sub.add_parser("watch", help="Poll the smart account balance")
    watch.add_argument("--seconds", type=float, default=30.0, help="How long to watch")

    send = sub.add_parser("send", help="Send tokens from the smart account")
    send.add_argument("--to", required=True, help="Recipient address")
    send.add_argument("--amount", required=True, help="Amount in token units, e.g. 10.50")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Environment: {settings.environment} (dry_run={settings.dry_run})")

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
