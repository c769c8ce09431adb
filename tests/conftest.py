"""
Pytest fixtures for the CyberCar SDK tests.
"""
import pytest
from unittest.mock import MagicMock

from cybercar_sdk._rate_limited_log import reset_rate_limits
from cybercar_sdk.account import derive_account
from cybercar_sdk.chain import ChainFactsProvider
from cybercar_sdk.contract import CarContract

from tests.test_helpers import TEST_MNEMONIC, TEST_RPC_URL, TEST_TX_HASH, make_receipt


@pytest.fixture(autouse=True)
def _reset_rate_limited_log():
    """Progress lines must not be suppressed across tests."""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture(scope="session")
def test_account():
    """Account 0 of the development mnemonic."""
    return derive_account(TEST_MNEMONIC, 0)


@pytest.fixture
def mock_chain():
    """
    ChainFactsProvider double: chain 1337, nonce 5, gas price 20 and a
    transaction that is already mined with a successful receipt.
    """
    chain = MagicMock(spec=ChainFactsProvider)
    chain.chain_id.return_value = 1337
    chain.nonce_at.return_value = 5
    chain.suggest_gas_price.return_value = 20
    chain.transaction_by_hash.return_value = ({"hash": TEST_TX_HASH, "blockNumber": 100}, False)
    chain.transaction_receipt.return_value = make_receipt(status=1)
    return chain


@pytest.fixture
def mock_contract():
    """CarContract double that accepts every write and reports not paused."""
    contract = MagicMock(spec=CarContract)
    contract.transact.return_value = TEST_TX_HASH
    contract.call.return_value = False
    return contract


@pytest.fixture
def mnemonic_file(tmp_path):
    path = tmp_path / "mnemonic.txt"
    path.write_text(f"  {TEST_MNEMONIC}\n")
    return path


@pytest.fixture
def rpc_mock(requests_mock):
    """
    JSON-RPC endpoint stub on TEST_RPC_URL.

    Returns a dict mapping method name to result; tests may edit it. Calls
    are recorded in ``requests_mock.request_history``.
    """
    results = {
        "eth_chainId": "0x539",
        "eth_gasPrice": "0x14",
        "eth_getTransactionCount": "0x5",
        "eth_estimateGas": "0x5208",
        "eth_maxPriorityFeePerGas": "0x0",
        "eth_sendRawTransaction": TEST_TX_HASH,
        "eth_getTransactionByHash": None,
        # abi-encoded bool true
        "eth_call": "0x" + "00" * 31 + "01",
    }

    def respond(request, context):
        body = request.json()
        method = body["method"]
        if method not in results:
            return {"jsonrpc": "2.0", "id": body["id"],
                    "error": {"code": -32601, "message": f"method {method} not found"}}
        return {"jsonrpc": "2.0", "id": body["id"], "result": results[method]}

    requests_mock.post(TEST_RPC_URL, json=respond)
    return results
