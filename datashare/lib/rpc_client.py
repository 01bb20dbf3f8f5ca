"""
Ethereum JSON-RPC client with automatic rate limit handling and retry logic.

This module provides a centralized client for all node interactions needed by
the datashare tools: chain metadata, contract code, transfer logs, read-only
contract calls and wallet-signed transactions. HTTP 429 and 5xx responses are
retried with exponential backoff for idempotent reads; log queries and
transaction submission are sent exactly once.
"""

import itertools
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

import requests


# Retry configuration
DEFAULT_INITIAL_DELAY = 1.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_MAX_RETRIES = 5
DEFAULT_MAX_DELAY = 32.0  # seconds
DEFAULT_JITTER = 0.1  # ±10%

# Receipt polling for submitted transactions
DEFAULT_RECEIPT_TIMEOUT = 120.0  # seconds
DEFAULT_RECEIPT_POLL_INTERVAL = 1.0  # seconds

EMPTY_CODE = "0x"


@dataclass
class TransferLog:
    """Represents a single log entry returned by eth_getLogs."""

    address: str  # Emitting contract
    topics: List[str]
    data: str
    block_number: int
    transaction_hash: str
    log_index: int

    @classmethod
    def from_rpc(cls, raw: Dict[str, Any]) -> "TransferLog":
        """Build a TransferLog from a raw JSON-RPC log object."""
        return cls(
            address=raw.get("address", ""),
            topics=list(raw.get("topics", [])),
            data=raw.get("data", "0x"),
            block_number=int(raw.get("blockNumber") or "0x0", 16),
            transaction_hash=raw.get("transactionHash", ""),
            log_index=int(raw.get("logIndex") or "0x0", 16),
        )


class RpcError(Exception):
    """Exception raised for JSON-RPC errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RpcRateLimitError(RpcError):
    """Exception raised when rate limit is exceeded and retries are exhausted."""

    pass


class ContractCallError(RpcError):
    """Exception raised when a contract call reverts or returns undecodable data."""

    pass


class TransactionFailedError(RpcError):
    """Exception raised when a submitted transaction reverts or is never mined."""

    pass


class RpcClient:
    """
    Centralized JSON-RPC client with automatic 429 retry handling.

    All node interactions go through this class, which handles:
    - Endpoint URL construction (optionally with a provider API key)
    - HTTP 429 rate limit retries with exponential backoff
    - Request/response serialization and JSON-RPC error mapping
    - Receipt polling for wallet-signed transactions
    """

    def __init__(
        self,
        rpc_url: str,
        api_key: Optional[str] = None,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_delay: float = DEFAULT_MAX_DELAY,
        jitter: float = DEFAULT_JITTER,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
        receipt_poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL,
    ):
        """
        Initialize the RPC client.

        Args:
            rpc_url: Node endpoint URL
            api_key: Optional provider API key, appended to the URL path
            initial_delay: Initial delay in seconds for retry backoff
            backoff_multiplier: Multiplier for exponential backoff
            max_retries: Maximum number of retry attempts
            max_delay: Maximum delay cap in seconds
            jitter: Jitter factor (±percentage) to randomize delays
            receipt_timeout: Seconds to wait for a transaction receipt
            receipt_poll_interval: Seconds between receipt polls
        """
        self.rpc_url = rpc_url
        self.api_key = api_key
        self.initial_delay = initial_delay
        self.backoff_multiplier = backoff_multiplier
        self.max_retries = max_retries
        self.max_delay = max_delay
        self.jitter = jitter
        self.receipt_timeout = receipt_timeout
        self.receipt_poll_interval = receipt_poll_interval
        self._local = threading.local()
        self._request_ids = itertools.count(1)

    @property
    def session(self) -> requests.Session:
        """The HTTP session owned by the calling thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def _sanitize_error_message(self, message: str) -> str:
        """Remove API key from error messages to prevent credential leakage."""
        if not self.api_key:
            return message
        return message.replace(self.api_key, "[REDACTED]")

    def _get_url(self) -> str:
        """Get the endpoint URL, with the API key appended when configured."""
        if self.api_key:
            return f"{self.rpc_url.rstrip('/')}/{self.api_key}"
        return self.rpc_url

    def _apply_jitter(self, delay: float) -> float:
        """Apply random jitter to a delay value."""
        jitter_range = delay * self.jitter
        return delay + random.uniform(-jitter_range, jitter_range)

    def _execute_with_retry(
        self,
        request_func: Callable[[], requests.Response],
        max_retries: Optional[int] = None,
    ) -> requests.Response:
        """
        Execute a request function with retry logic for rate limits and server errors.

        Args:
            request_func: A callable that returns a requests.Response
            max_retries: Overrides the client's retry count; 0 sends the request once

        Returns:
            The successful response

        Raises:
            RpcError: For HTTP errors after retries exhausted
            RpcRateLimitError: When rate limit retries are exhausted
        """
        if max_retries is None:
            max_retries = self.max_retries
        delay = self.initial_delay

        for attempt in range(max_retries + 1):
            try:
                response = request_func()

                if response.status_code == 429:
                    if attempt < max_retries:
                        time.sleep(self._apply_jitter(min(delay, self.max_delay)))
                        delay *= self.backoff_multiplier
                        continue
                    raise RpcRateLimitError(
                        "Rate limit exceeded and max retries reached",
                        status_code=429,
                    )

                if response.status_code in (401, 403):
                    raise RpcError("Unauthorized RPC endpoint", status_code=response.status_code)

                if response.status_code >= 500:
                    if attempt < max_retries:
                        time.sleep(self._apply_jitter(min(delay, self.max_delay)))
                        delay *= self.backoff_multiplier
                        continue
                    raise RpcError(
                        f"Server error: {response.status_code}",
                        status_code=response.status_code,
                    )

                response.raise_for_status()
                return response

            except requests.RequestException as e:
                if attempt < max_retries:
                    time.sleep(self._apply_jitter(min(delay, self.max_delay)))
                    delay *= self.backoff_multiplier
                    continue
                sanitized_msg = self._sanitize_error_message(str(e))
                raise RpcError(f"Request failed: {sanitized_msg}") from e

        raise RpcError("Max retries exceeded")

    def _request(
        self,
        method: str,
        params: List[Any],
        error_class: Type[RpcError] = RpcError,
        retry: bool = True,
    ) -> Any:
        """
        Make a JSON-RPC request with automatic 429 retry and exponential backoff.

        Args:
            method: JSON-RPC method name
            params: Method parameters
            error_class: Exception raised when the response carries a JSON-RPC error
            retry: Whether transport failures are retried; False sends exactly one request

        Returns:
            The 'result' field from the JSON-RPC response

        Raises:
            RpcError: For transport and JSON-RPC errors
            RpcRateLimitError: When rate limit retries are exhausted
        """
        url = self._get_url()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._request_ids),
        }

        response = self._execute_with_retry(
            lambda: self.session.post(url, json=payload),
            max_retries=None if retry else 0,
        )
        try:
            data = response.json()
        except ValueError as e:
            raise RpcError(f"Invalid JSON-RPC response for {method}") from e
        if not isinstance(data, dict):
            raise RpcError(f"Invalid JSON-RPC response for {method}")

        if "error" in data:
            error = data["error"]
            raise error_class(
                f"RPC error: {error.get('message', str(error))}",
                status_code=error.get("code"),
            )

        return data.get("result")

    def chain_id(self) -> int:
        """Get the chain ID of the connected network."""
        return int(self._request("eth_chainId", []), 16)

    def block_number(self) -> int:
        """Get the number of the most recent block."""
        return int(self._request("eth_blockNumber", []), 16)

    def get_code(self, address: str) -> str:
        """
        Get the deployed bytecode at an address.

        Returns:
            Hex string; "0x" when no contract is deployed
        """
        return self._request("eth_getCode", [address, "latest"]) or EMPTY_CODE

    def get_logs(
        self,
        topics: List[Optional[str]],
        from_block: int,
        to_block: Optional[int] = None,
    ) -> List[TransferLog]:
        """
        Query logs matching a topic filter.

        Args:
            topics: Topic filter; None entries match any value
            from_block: First block of the range
            to_block: Last block of the range ("latest" when None)

        Returns:
            List of TransferLog objects
        """
        log_filter = {
            "topics": topics,
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block) if to_block is not None else "latest",
        }
        # Never retried: a failed log query surfaces to the caller as-is
        result = self._request("eth_getLogs", [log_filter], retry=False) or []
        return [TransferLog.from_rpc(raw) for raw in result]

    def call(self, to: str, data: str) -> str:
        """
        Execute a read-only contract call against the latest block.

        Raises:
            ContractCallError: If the call reverts
        """
        result = self._request(
            "eth_call",
            [{"to": to, "data": data}, "latest"],
            error_class=ContractCallError,
        )
        return result or "0x"

    def send_transaction(self, from_address: str, to: str, data: str) -> str:
        """
        Submit a transaction to be signed by the node's wallet and wait for it to be mined.

        The submission is sent exactly once; transport failures raise instead of retrying.

        Args:
            from_address: Sending account, managed by the connected wallet
            to: Target contract
            data: ABI-encoded call data

        Returns:
            The transaction hash

        Raises:
            TransactionFailedError: If the transaction reverts or no receipt arrives
        """
        tx_hash = self._request(
            "eth_sendTransaction",
            [{"from": from_address, "to": to, "data": data}],
            retry=False,
        )
        receipt = self.wait_for_receipt(tx_hash)
        if not isinstance(receipt, dict):
            raise TransactionFailedError(f"Malformed receipt for {tx_hash}")
        if int(receipt.get("status") or "0x0", 16) != 1:
            raise TransactionFailedError(f"Transaction {tx_hash} reverted")
        return tx_hash

    def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """
        Poll for a transaction receipt.

        Raises:
            TransactionFailedError: If no receipt is available before the timeout
        """
        deadline = time.monotonic() + self.receipt_timeout

        while True:
            receipt = self._request("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                return receipt
            if time.monotonic() >= deadline:
                raise TransactionFailedError(
                    f"Timed out waiting for receipt of {tx_hash}"
                )
            time.sleep(self.receipt_poll_interval)
