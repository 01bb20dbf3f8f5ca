"""
Datatoken discovery from ERC-20 transfer logs.

This module scans the Transfer events touching a wallet, classifies each
emitting contract as a datatoken (directly, or through a factory contract
that lists member tokens) and enriches the resolved tokens with the wallet's
current balance and the transfers already fetched.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Iterable, List, Optional

from eth_utils import to_checksum_address

from .abi import (
    BALANCE_OF,
    DECIMALS,
    GET_DISPENSERS,
    GET_ERC721_ADDRESS,
    GET_TOKENS_LIST,
    NAME,
    SYMBOL,
    TRANSFER_TOPIC,
    address_topic,
    call_function,
    is_zero_address,
)
from .models import DatatokenDescriptor, HoldingsResult, TokenHolding
from .rpc_client import EMPTY_CODE, RpcClient, RpcError, TransferLog

logger = logging.getLogger(__name__)

# Trailing block window for the incoming/outgoing transfer scan
DEFAULT_WINDOW_BLOCKS = 10000
DEFAULT_MAX_WORKERS = 8
# Decimals assumed when a token's balance record cannot be read
DEFAULT_DECIMALS = 18


def format_quantity(raw_balance: int, decimals: int) -> str:
    """
    Format balance with full precision, trimming trailing zeros.

    Args:
        raw_balance: Raw balance value (in smallest unit)
        decimals: Number of decimal places

    Returns:
        Formatted balance string with trailing zeros trimmed

    Examples:
        format_quantity(10**18, 18) -> "1"
        format_quantity(1500000, 6) -> "1.5"
    """
    if raw_balance == 0:
        return "0"

    if decimals == 0:
        return str(raw_balance)

    balance = Decimal(raw_balance) / Decimal(10**decimals)
    formatted = format(balance, "f")

    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")

    return formatted


def unique_addresses(events: Iterable[TransferLog]) -> List[str]:
    """Emitting contract addresses of `events`, deduplicated case-insensitively in first-seen order."""
    seen = set()
    addresses = []
    for event in events:
        key = event.address.lower()
        if key not in seen:
            seen.add(key)
            addresses.append(event.address)
    return addresses


def dedupe_by_address(tokens: Iterable[DatatokenDescriptor]) -> List[DatatokenDescriptor]:
    """Drop descriptors whose address (case-insensitive) was already seen; first wins."""
    seen = set()
    unique = []
    for token in tokens:
        key = token.address.lower()
        if key not in seen:
            seen.add(key)
            unique.append(token)
    return unique


class TokenFetcher:
    """
    Discovers the datatokens a wallet has interacted with.

    Candidate contracts come from Transfer logs in a trailing block window
    (both directions) plus the full incoming history. Each candidate is
    probed as a datatoken first and as a token factory second.
    """

    def __init__(
        self,
        client: RpcClient,
        dispenser_address: Optional[str] = None,
        window_blocks: int = DEFAULT_WINDOW_BLOCKS,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """
        Initialize the fetcher.

        Args:
            client: RpcClient instance for node calls
            dispenser_address: Dispenser to look for on resolved tokens (optional)
            window_blocks: Size of the trailing block window for the transfer scan
            max_workers: Maximum concurrent candidate resolutions
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.client = client
        self.dispenser_address = dispenser_address
        self.window_blocks = window_blocks
        self.max_workers = max_workers

    def _probe_datatoken(self, address: str) -> Optional[DatatokenDescriptor]:
        """Read `address` as a datatoken; None unless it reports a non-zero parent NFT."""
        try:
            name = call_function(self.client, address, NAME)
            symbol = call_function(self.client, address, SYMBOL)
            erc721_address = call_function(self.client, address, GET_ERC721_ADDRESS)
        except RpcError as e:
            logger.debug("%s is not a direct datatoken: %s", address, e)
            return None

        if is_zero_address(erc721_address):
            logger.debug("%s reports a zero NFT address", address)
            return None

        return DatatokenDescriptor(
            address=address,
            name=name,
            symbol=symbol,
            erc721_address=erc721_address,
        )

    def _probe_factory(self, address: str) -> Optional[DatatokenDescriptor]:
        """Read `address` as a factory and return its first member that is a datatoken."""
        try:
            members = call_function(self.client, address, GET_TOKENS_LIST)
        except RpcError as e:
            logger.debug("Error getting tokens list for %s: %s", address, e)
            return None

        logger.debug("Tokens list for %s: %s", address, members)
        # Only the first valid member is ever resolved per factory
        for member in members:
            descriptor = self._probe_datatoken(member)
            if descriptor is not None:
                descriptor.initial_token_address = address
                return descriptor

        return None

    def check_dispenser(self, token_address: str) -> Optional[bool]:
        """
        Check whether the configured dispenser is registered on a token.

        Returns:
            True/False, or None when no dispenser is configured or the check failed
        """
        if not self.dispenser_address:
            return None

        try:
            dispensers = call_function(self.client, token_address, GET_DISPENSERS)
        except RpcError as e:
            logger.warning("Error checking dispensers for %s (non-critical): %s", token_address, e)
            return None

        expected = self.dispenser_address.lower()
        return any(dispenser.lower() == expected for dispenser in dispensers)

    def resolve_token_candidate(self, address: str) -> Optional[DatatokenDescriptor]:
        """
        Classify a candidate contract as a datatoken.

        Addresses without deployed code are skipped. The direct datatoken probe
        runs first; the factory probe only runs when it fails.

        Args:
            address: Candidate contract address

        Returns:
            DatatokenDescriptor, or None if no strategy resolved the address
        """
        try:
            code = self.client.get_code(address)
        except RpcError as e:
            logger.error("Error analyzing token %s: %s", address, e)
            return None

        if code == EMPTY_CODE:
            logger.debug("%s is not a contract, skipping", address)
            return None

        descriptor = self._probe_datatoken(address)
        if descriptor is None:
            descriptor = self._probe_factory(address)
        if descriptor is None:
            logger.debug("No datatoken found for %s", address)
            return None

        descriptor.has_dispenser = self.check_dispenser(descriptor.address)
        logger.info(
            "Found datatoken %s (%s) with NFT address %s",
            descriptor.address,
            descriptor.symbol,
            descriptor.erc721_address,
        )
        return descriptor

    def get_token_balance(self, token_address: str, wallet: str) -> Optional[TokenHolding]:
        """
        Read a wallet's balance record for a token.

        Returns:
            TokenHolding without transfers, or None if any read fails
        """
        try:
            balance = call_function(self.client, token_address, BALANCE_OF, wallet)
            name = call_function(self.client, token_address, NAME)
            symbol = call_function(self.client, token_address, SYMBOL)
            decimals = call_function(self.client, token_address, DECIMALS)
            erc721_address = call_function(self.client, token_address, GET_ERC721_ADDRESS)
        except RpcError as e:
            logger.error("Error getting token info for %s: %s", token_address, e)
            return None

        return TokenHolding(
            address=token_address,
            name=name,
            symbol=symbol,
            erc721_address=erc721_address,
            balance=str(balance),
            decimals=decimals,
        )

    def _enrich(
        self,
        token: DatatokenDescriptor,
        wallet: str,
        events: List[TransferLog],
    ) -> TokenHolding:
        """Attach balance and the already-fetched transfers to a resolved token."""
        record = self.get_token_balance(token.address, wallet)
        key = token.address.lower()
        transfers = [event for event in events if event.address.lower() == key]

        return TokenHolding(
            address=token.address,
            name=token.name,
            symbol=token.symbol,
            erc721_address=record.erc721_address if record else token.erc721_address,
            balance=record.balance if record else "0",
            decimals=record.decimals if record else DEFAULT_DECIMALS,
            transfers=transfers,
            initial_token_address=token.initial_token_address,
            has_dispenser=token.has_dispenser,
        )

    def fetch_wallet_token_holdings(self, wallet: str) -> HoldingsResult:
        """
        Discover the datatokens a wallet holds or has transferred.

        Args:
            wallet: Wallet address (0x...)

        Returns:
            HoldingsResult with one entry per distinct token address

        Raises:
            ValueError: If the wallet address is malformed
            RpcError: If any log query fails
        """
        wallet = to_checksum_address(wallet)
        wallet_topic = address_topic(wallet)

        current_block = self.client.block_number()
        from_block = max(0, current_block - self.window_blocks)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            incoming = pool.submit(
                self.client.get_logs, [TRANSFER_TOPIC, None, wallet_topic], from_block
            )
            outgoing = pool.submit(
                self.client.get_logs, [TRANSFER_TOPIC, wallet_topic, None], from_block
            )
            recent_events = incoming.result() + outgoing.result()
            recent_addresses = unique_addresses(recent_events)
            logger.info(
                "Found %d unique token addresses from transfers", len(recent_addresses)
            )

            # Full incoming history catches holdings older than the window
            history_events = self.client.get_logs([TRANSFER_TOPIC, None, wallet_topic], 0)
            history_addresses = unique_addresses(history_events)
            logger.info(
                "Found %d unique token addresses from balance check", len(history_addresses)
            )

            candidates = unique_addresses(recent_events + history_events)
            resolved = pool.map(self.resolve_token_candidate, candidates)
            tokens = dedupe_by_address(token for token in resolved if token is not None)

            holdings = list(
                pool.map(lambda token: self._enrich(token, wallet, recent_events), tokens)
            )

        if holdings:
            message = f"Found {len(holdings)} tokens"
        else:
            message = "No tokens found"
        return HoldingsResult(tokens=holdings, message=message)
