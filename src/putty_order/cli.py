"""Putty order CLI — hash, sign and recover ABI-encoded orders.

Usage:
    putty-order hash <encoded-order>
    putty-order sign <encoded-order> <private-key>
    putty-order recover <encoded-order> <signature>

The encoded order is the ABI encoding of the Order tuple as hex text. The
result is written to stdout without a trailing newline; the signing domain
defaults to the ``PUTTY_*`` settings and can be overridden per call.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from eth_utils import encode_hex
from pydantic import ValidationError

from .errors import TypedDataError
from .logger import get_logger, setup_logging
from .order_struct import decode_order, hash_order, sign_order
from .settings import Settings, get_settings
from .sign_core import recover_address
from .typed_data import Domain

logger = get_logger("putty_order.cli")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="putty-order",
        description="EIP-712 hashing and signing of Putty orders",
    )
    parser.add_argument("--name", default=settings.PUTTY_DOMAIN_NAME, help="domain name")
    parser.add_argument("--domain-version", default=settings.PUTTY_DOMAIN_VERSION, help="domain version")
    parser.add_argument("--chain-id", type=int, default=settings.PUTTY_CHAIN_ID, help="domain chain id")
    parser.add_argument(
        "--verifying-contract",
        default=settings.PUTTY_VERIFYING_CONTRACT,
        help="domain verifying contract address",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    hash_cmd = sub.add_parser("hash", help="print the order digest")
    hash_cmd.add_argument("encoded_order")

    sign_cmd = sub.add_parser("sign", help="print the order signature")
    sign_cmd.add_argument("encoded_order")
    sign_cmd.add_argument("private_key")

    recover_cmd = sub.add_parser("recover", help="print the address that signed the order")
    recover_cmd.add_argument("encoded_order")
    recover_cmd.add_argument("signature")

    return parser


def run(args: argparse.Namespace) -> str:
    domain = Domain(
        name=args.name,
        version=args.domain_version,
        chain_id=args.chain_id,
        verifying_contract=args.verifying_contract,
    )
    order = decode_order(args.encoded_order)

    if args.command == "hash":
        return encode_hex(hash_order(order, domain))
    if args.command == "sign":
        return sign_order(order, domain, args.private_key).hex()
    return recover_address(hash_order(order, domain), args.signature)


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"error: config_error: {exc}", file=sys.stderr)
        return 1
    setup_logging(settings)
    args = build_parser(settings).parse_args(argv)

    try:
        output = run(args)
    except TypedDataError as exc:
        logger.info("cli.failed", command=args.command, kind=exc.kind, error=str(exc))
        print(f"error: {exc.kind}: {exc}", file=sys.stderr)
        return 1

    sys.stdout.write(output)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
