"""
Pytest configuration and shared fixtures for datashare-tools tests.
"""

import json
from collections import Counter

import pytest
import responses
from eth_abi import encode

from datashare.lib.abi import TRANSFER_TOPIC, address_topic


RPC_URL = "https://rpc.test.example/v1"
INDEX_URL = "https://market.test.example"


class FakeChain:
    """
    In-memory JSON-RPC node answering by method and, for eth_call, by (contract, selector).

    Unregistered calls revert, unregistered addresses have no code.
    """

    def __init__(self, block_number=20000, chain_id=137):
        self.mock = None  # RequestsMock serving this chain, for extra routes
        self.block_number = block_number
        self.chain_id = chain_id
        self.code = {}
        self.results = {}
        self.logs = []
        self.eth_calls = []
        self.log_queries = []
        self.sent_transactions = []
        self.receipt_status = "0x1"
        self.send_error = None
        self.http_failures = {}  # method -> HTTP status answered instead of a result
        self.attempts = Counter()  # POSTs received per method

    def deploy(self, address, code="0x6080604052"):
        self.code[address.lower()] = code

    def returns(self, address, function, *values):
        """Make `function` on `address` return the ABI encoding of `values`."""
        self.code.setdefault(address.lower(), "0x6080604052")
        self.results[(address.lower(), function.selector)] = (
            "0x" + encode(list(function.outputs), list(values)).hex()
        )

    def returns_raw(self, address, function, types, values):
        """Make `function` on `address` return `values` encoded as `types`."""
        self.code.setdefault(address.lower(), "0x6080604052")
        self.results[(address.lower(), function.selector)] = "0x" + encode(types, values).hex()

    def add_transfer(self, token, sender, recipient, block):
        self.logs.append(
            {
                "address": token,
                "topics": [TRANSFER_TOPIC, address_topic(sender), address_topic(recipient)],
                "data": "0x" + (10**18).to_bytes(32, "big").hex(),
                "blockNumber": hex(block),
                "transactionHash": "0x" + f"{len(self.logs):064x}",
                "logIndex": "0x0",
            }
        )

    def called(self, address, function):
        return (address.lower(), function.selector) in self.eth_calls

    def _match_logs(self, log_filter):
        from_block = int(log_filter.get("fromBlock", "0x0"), 16)
        topics = log_filter.get("topics", [])
        matched = []
        for log in self.logs:
            if int(log["blockNumber"], 16) < from_block:
                continue
            if all(
                wanted is None or wanted.lower() == actual.lower()
                for wanted, actual in zip(topics, log["topics"])
            ):
                matched.append(log)
        return matched

    def _dispatch(self, method, params):
        if method == "eth_chainId":
            return {"result": hex(self.chain_id)}
        if method == "eth_blockNumber":
            return {"result": hex(self.block_number)}
        if method == "eth_getCode":
            return {"result": self.code.get(params[0].lower(), "0x")}
        if method == "eth_getLogs":
            self.log_queries.append(params[0])
            return {"result": self._match_logs(params[0])}
        if method == "eth_call":
            to = params[0]["to"].lower()
            selector = params[0]["data"][:10]
            self.eth_calls.append((to, selector))
            if (to, selector) in self.results:
                return {"result": self.results[(to, selector)]}
            return {"error": {"code": -32000, "message": "execution reverted"}}
        if method == "eth_sendTransaction":
            if self.send_error:
                return {"error": {"code": 4001, "message": self.send_error}}
            self.sent_transactions.append(params[0])
            return {"result": "0x" + "ab" * 32}
        if method == "eth_getTransactionReceipt":
            return {"result": {"transactionHash": params[0], "status": self.receipt_status}}
        return {"error": {"code": -32601, "message": f"Method {method} not found"}}

    def handle(self, request):
        payload = json.loads(request.body)
        self.attempts[payload["method"]] += 1
        if payload["method"] in self.http_failures:
            return self.http_failures[payload["method"]], {}, "upstream failure"
        body = {"jsonrpc": "2.0", "id": payload["id"]}
        body.update(self._dispatch(payload["method"], payload["params"]))
        return 200, {}, json.dumps(body)


@pytest.fixture
def sample_wallet_address():
    """Sample Ethereum wallet address for testing."""
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


@pytest.fixture
def sample_friends():
    return [
        "0x1111111111111111111111111111111111111111",
        "0x2222222222222222222222222222222222222222",
        "0x3333333333333333333333333333333333333333",
    ]


@pytest.fixture
def rpc_url():
    return RPC_URL


@pytest.fixture
def index_url():
    return INDEX_URL


@pytest.fixture
def fake_chain():
    """A FakeChain answering every POST to the test RPC URL."""
    chain = FakeChain()
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add_callback(
            responses.POST,
            RPC_URL,
            callback=chain.handle,
            content_type="application/json",
        )
        chain.mock = rsps
        yield chain
