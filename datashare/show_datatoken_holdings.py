#!/usr/bin/env python3
"""
Show the datatokens a wallet holds or has recently transferred.

This script scans ERC-20 Transfer logs touching a wallet, resolves each
emitting contract to a datatoken and its parent NFT, and writes a CSV report
with the wallet's current balance of each.
"""

import argparse
import logging
import sys
from typing import List, Optional

from eth_utils import is_address

from datashare.lib.formatters import write_csv
from datashare.lib.models import HoldingsResult
from datashare.lib.rpc_client import RpcClient, RpcError
from datashare.lib.token_fetcher import DEFAULT_MAX_WORKERS, DEFAULT_WINDOW_BLOCKS, TokenFetcher


def log(prefix: str, message: str) -> None:
    """Log a message with a prefix."""
    print(f"[{prefix}] {message}", file=sys.stderr)


def validate_wallet(wallet: str) -> str:
    """
    Validate a wallet address.

    Raises:
        ValueError: If the value is not a 20-byte hex address
    """
    wallet = wallet.strip()
    if not is_address(wallet):
        raise ValueError(f"Invalid wallet address: {wallet}")
    return wallet


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def scan_wallet(fetcher: TokenFetcher, wallet: str) -> HoldingsResult:
    """
    Scan a wallet for datatokens and log a summary.

    Raises:
        RpcError: If the transfer logs cannot be read
    """
    log("scan", f"Scanning transfers for {wallet}...")
    result = fetcher.fetch_wallet_token_holdings(wallet)
    log("scan", result.message)

    for token in result.tokens:
        via = f" via {token.initial_token_address}" if token.initial_token_address else ""
        log(token.symbol or token.address, f"NFT {token.erc721_address}{via}")

    return result


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        description="Discover the datatokens a wallet holds and generate a CSV report.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan a wallet, output to stdout
  %(prog)s --rpc-url https://rpc.example.org --wallet 0x...

  # Scan with a provider key and look for a dispenser, save to file
  %(prog)s --rpc-url https://polygon-mainnet.example.org/v3 --api-key KEY \\
    --wallet 0x... --dispenser 0x... --output holdings.csv
        """,
    )

    parser.add_argument("--rpc-url", required=True, help="JSON-RPC endpoint URL")
    parser.add_argument("--api-key", help="Provider API key appended to the RPC URL")
    parser.add_argument("--wallet", required=True, help="Wallet address to scan")
    parser.add_argument("--dispenser", help="Dispenser address to check on each datatoken")
    parser.add_argument(
        "--window-blocks",
        type=int,
        default=DEFAULT_WINDOW_BLOCKS,
        help=f"Trailing blocks scanned in both directions (default: {DEFAULT_WINDOW_BLOCKS})",
    )
    parser.add_argument(
        "--max-workers",
        type=positive_int,
        default=DEFAULT_MAX_WORKERS,
        help=f"Concurrent token resolutions (default: {DEFAULT_MAX_WORKERS})",
    )
    parser.add_argument(
        "--output",
        help="Output file path (timestamp auto-appended). If not specified, outputs to stdout.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        wallet = validate_wallet(parsed_args.wallet)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    client = RpcClient(parsed_args.rpc_url, api_key=parsed_args.api_key)
    fetcher = TokenFetcher(
        client,
        dispenser_address=parsed_args.dispenser,
        window_blocks=parsed_args.window_blocks,
        max_workers=parsed_args.max_workers,
    )

    try:
        result = scan_wallet(fetcher, wallet)
    except RpcError as e:
        log("scan", f"ERROR: {e}")
        return 1

    output_file = write_csv(result.tokens, parsed_args.output)
    if output_file:
        print(f"\nResults written to: {output_file}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
