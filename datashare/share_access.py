#!/usr/bin/env python3
"""
Share access to a data asset by minting one datatoken to a friend.

Drives the share dialog non-interactively: open it for the NFT/datatoken
pair, select the friend, confirm. The transaction is signed by the wallet
managed by the connected node.
"""

import argparse
import logging
import sys
from typing import List, Optional

from datashare.lib.address_book import AddressBook
from datashare.lib.rpc_client import RpcClient
from datashare.lib.share_dialog import ShareDialog
from datashare.lib.views import DialogView, TxState
from datashare.show_datatoken_holdings import log, validate_wallet


def report_status(view: DialogView) -> None:
    """Print each status change of the dialog."""
    if view.status is not None:
        log("share", view.status.message)


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        description="Mint one datatoken to a friend to share access to a data asset.",
    )

    parser.add_argument("--rpc-url", required=True, help="JSON-RPC endpoint with an unlocked wallet")
    parser.add_argument("--wallet", required=True, help="Sending wallet address")
    parser.add_argument("--nft", required=True, help="NFT address of the asset")
    parser.add_argument("--datatoken", required=True, help="Datatoken address to mint")
    parser.add_argument("--friends-file", required=True, help="Address book file")
    parser.add_argument("--friend", required=True, help="Friend address to share with")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        wallet = validate_wallet(parsed_args.wallet)
        address_book = AddressBook.from_file(parsed_args.friends_file)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    dialog = ShareDialog(RpcClient(parsed_args.rpc_url), address_book, wallet)
    dialog.subscribe(report_status)
    dialog.open(parsed_args.nft, parsed_args.datatoken)

    if not dialog.view().confirm_enabled:
        log("share", "No friends added yet. Add friends to share your NFT access.")
        return 1

    try:
        dialog.select_friend(parsed_args.friend)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        dialog.close()
        return 1

    status = dialog.confirm()
    dialog.close()
    return 0 if status is not None and status.state is TxState.SUCCESS else 1


if __name__ == "__main__":
    sys.exit(main())
