"""
Contract ABI helpers for the datatoken, factory and dispenser functions.

Selectors and the Transfer event topic are keccak-256 hashes of the canonical
signatures; arguments and return values use the standard ABI encoding.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import keccak

from .rpc_client import ContractCallError, RpcClient


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

TRANSFER_EVENT_SIGNATURE = "Transfer(address,address,uint256)"
TRANSFER_TOPIC = "0x" + keccak(text=TRANSFER_EVENT_SIGNATURE).hex()


@dataclass(frozen=True)
class ContractFunction:
    """A contract function described by its name, input types and output types."""

    name: str
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> str:
        """The 4-byte function selector as a 0x-prefixed hex string."""
        return "0x" + keccak(text=self.signature)[:4].hex()

    def encode_call(self, *args: Any) -> str:
        """Encode call data for this function."""
        if len(args) != len(self.inputs):
            raise ValueError(
                f"{self.signature} takes {len(self.inputs)} argument(s), got {len(args)}"
            )
        try:
            encoded = encode(list(self.inputs), list(args)) if self.inputs else b""
        except EncodingError as e:
            raise ValueError(f"Cannot encode arguments for {self.signature}: {e}") from e
        return self.selector + encoded.hex()

    def decode_output(self, data: str) -> Any:
        """
        Decode return data for this function.

        Single-value outputs are unwrapped; multi-value outputs are returned as a tuple.

        Raises:
            ContractCallError: If the data is empty or does not match the output types
        """
        try:
            raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
        except ValueError as e:
            raise ContractCallError(f"{self.signature} returned malformed data") from e
        if not raw and self.outputs:
            raise ContractCallError(f"{self.signature} returned no data")
        try:
            values = decode(list(self.outputs), raw)
        except (DecodingError, UnicodeDecodeError) as e:
            raise ContractCallError(f"Cannot decode {self.signature} output: {e}") from e
        if len(values) == 1:
            return values[0]
        return values


# ERC-20 surface plus the datatoken backlink to its parent NFT
NAME = ContractFunction("name", outputs=("string",))
SYMBOL = ContractFunction("symbol", outputs=("string",))
DECIMALS = ContractFunction("decimals", outputs=("uint8",))
BALANCE_OF = ContractFunction("balanceOf", inputs=("address",), outputs=("uint256",))
GET_ERC721_ADDRESS = ContractFunction("getERC721Address", outputs=("address",))

# Factory listing member tokens
GET_TOKENS_LIST = ContractFunction("getTokensList", outputs=("address[]",))

# Dispensers authorised on a datatoken
GET_DISPENSERS = ContractFunction("getDispensers", outputs=("address[]",))

MINT = ContractFunction("mint", inputs=("address", "uint256"))


def address_topic(address: str) -> str:
    """Left-pad an address to a 32-byte log topic."""
    return "0x" + address.lower().replace("0x", "", 1).rjust(64, "0")


def is_zero_address(address: str) -> bool:
    return not address or int(address, 16) == 0


def call_function(client: RpcClient, address: str, function: ContractFunction, *args: Any) -> Any:
    """Execute a read-only call of `function` on the contract at `address` and decode it."""
    return function.decode_output(client.call(address, function.encode_call(*args)))
