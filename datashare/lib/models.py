"""
Data models for datatoken discovery and data-asset display.

This module defines the records read from the asset search index, the
datatoken descriptors produced by log scanning, and the CSV layout used
for holdings output.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .rpc_client import TransferLog


# CSV column order for holdings output
CSV_COLUMNS = [
    "address",
    "name",
    "symbol",
    "erc721_address",
    "initial_token_address",
    "balance",
    "quantity",
    "decimals",
    "transfer_count",
]


@dataclass
class DatatokenRef:
    """A datatoken attached to an indexed asset."""

    symbol: str
    address: str


@dataclass
class UserAsset:
    """
    A data asset as returned by the search index.

    Read-only; every field comes from the `_source` document of one hit.
    """

    did: str  # Explicit id, or the NFT address when the index has none
    name: str
    description: str
    author: str
    created: str  # Raw timestamp string from the metadata
    nft_address: str
    datatokens: List[DatatokenRef] = field(default_factory=list)
    preview_image_url: Optional[str] = None

    @classmethod
    def from_source(cls, source: Dict[str, Any]) -> "UserAsset":
        """Build a UserAsset from a search hit's `_source` document."""
        nft = source.get("nft") or {}
        metadata = source.get("metadata") or {}
        nft_address = nft.get("address", "")

        return cls(
            did=source.get("id") or nft_address,
            name=metadata.get("name", ""),
            description=metadata.get("description", ""),
            author=metadata.get("author", ""),
            created=metadata.get("created", ""),
            nft_address=nft_address,
            datatokens=[
                DatatokenRef(symbol=dt.get("symbol", ""), address=dt.get("address", ""))
                for dt in source.get("datatokens") or []
            ],
            preview_image_url=metadata.get("previewImageUrl") or None,
        )


@dataclass
class DatatokenDescriptor:
    """
    A contract resolved as a datatoken.

    Valid only when `erc721_address` is non-zero.
    """

    address: str
    name: str
    symbol: str
    erc721_address: str
    initial_token_address: Optional[str] = None  # Factory the token was found through
    has_dispenser: Optional[bool] = None  # None when unchecked or the check failed


@dataclass
class TokenHolding:
    """A resolved datatoken enriched with the wallet's balance and scanned transfers."""

    address: str
    name: str
    symbol: str
    erc721_address: str
    balance: str  # Raw base units as a decimal string
    decimals: int
    transfers: List[TransferLog] = field(default_factory=list)
    initial_token_address: Optional[str] = None
    has_dispenser: Optional[bool] = None

    def to_csv_row(self, quantity: str) -> List[str]:
        """Convert holding to a CSV row (list of strings)."""
        return [
            self.address,
            self.name,
            self.symbol,
            self.erc721_address,
            self.initial_token_address or "",
            self.balance,
            quantity,
            str(self.decimals),
            str(len(self.transfers)),
        ]


@dataclass
class HoldingsResult:
    """Result of scanning a wallet for datatokens."""

    tokens: List[TokenHolding]
    message: str
