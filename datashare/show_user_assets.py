#!/usr/bin/env python3
"""
Render a wallet's indexed data assets as an HTML page of asset cards.
"""

import argparse
import logging
import sys
from typing import List, Optional

from datashare.lib.asset_index import AssetIndexClient
from datashare.lib.assets_panel import AssetsPanel
from datashare.lib.formatters import render_page, write_html
from datashare.lib.rpc_client import RpcClient, RpcError
from datashare.lib.views import render_asset_list_html
from datashare.show_datatoken_holdings import log, validate_wallet


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        description="Render the data assets indexed for a wallet as HTML.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Chain ID read from the node
  %(prog)s --index-url https://market.example.org --rpc-url https://rpc.example.org \\
    --wallet 0x...

  # Explicit chain ID, save to file
  %(prog)s --index-url https://market.example.org --chain-id 137 --wallet 0x... \\
    --output assets.html
        """,
    )

    parser.add_argument("--index-url", required=True, help="Base URL of the asset search API")
    parser.add_argument("--wallet", required=True, help="Wallet address")
    chain = parser.add_mutually_exclusive_group(required=True)
    chain.add_argument("--chain-id", type=int, help="Numeric chain ID")
    chain.add_argument("--rpc-url", help="JSON-RPC endpoint to read the chain ID from")
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

    chain_id = parsed_args.chain_id
    if chain_id is None:
        try:
            chain_id = RpcClient(parsed_args.rpc_url).chain_id()
        except RpcError as e:
            log("assets", f"ERROR: cannot read chain ID: {e}")
            return 1

    panel = AssetsPanel(AssetIndexClient(parsed_args.index_url))
    view = panel.load(wallet, chain_id)
    log("assets", f"Rendered {len(view.cards)} asset card(s) for chain {chain_id}")

    page = render_page("My Assets", render_asset_list_html(view))
    output_file = write_html(page, parsed_args.output)
    if output_file:
        print(f"\nPage written to: {output_file}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
