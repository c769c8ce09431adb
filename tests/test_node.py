"""
Tests for the Node operator facade.
"""
import pytest
from unittest.mock import MagicMock, patch

from cybercar_sdk.cancel import CancelToken
from cybercar_sdk.config import NodeConfig
from cybercar_sdk.exceptions import (
    KeyDerivationError,
    OperationCancelledError,
    RpcError,
    TransactionRevertedError,
)
from cybercar_sdk.lifecycle import TransactionLifecycleManager
from cybercar_sdk.models import Quota, TxState
from cybercar_sdk.node import Node
from tests.test_helpers import (
    TEST_ADDRESS_0,
    TEST_ADDRESS_1,
    TEST_CONTRACT,
    TEST_RPC_URL,
    TEST_TX_HASH,
    create_test_node,
    make_receipt,
)


@pytest.fixture
def node(mock_chain, mock_contract, test_account):
    return create_test_node(mock_chain, mock_contract, test_account)


def make_config(mnemonic_path, **kwargs):
    return NodeConfig(rpc=TEST_RPC_URL, contract=TEST_CONTRACT, mnemonic=str(mnemonic_path), **kwargs)


class TestInit:
    """Test Node.init()."""

    @patch("cybercar_sdk.node.CarContract")
    @patch("cybercar_sdk.node.connect")
    def test_init_wires_collaborators(self, mock_connect, mock_car, mnemonic_file):
        cfg = make_config(mnemonic_file, account=1, pollInterval=0.25, maxWait=90, lookupRetries=2)

        node = Node(cfg).init()

        assert node.address == TEST_ADDRESS_1
        mock_connect.assert_called_once_with(TEST_RPC_URL, retry_count=3, timeout=30)
        mock_car.assert_called_once_with(mock_connect.return_value, TEST_CONTRACT, node.logger)
        assert isinstance(node.manager, TransactionLifecycleManager)
        assert node.manager.poll_interval == 0.25
        assert node.manager.max_wait == 90
        assert node.manager.lookup_retries == 2
        assert node.manager.account is node.account

    @patch("cybercar_sdk.node.connect")
    def test_bad_mnemonic_stops_before_connecting(self, mock_connect, tmp_path):
        path = tmp_path / "mnemonic.txt"
        path.write_text("definitely not twelve words")

        with pytest.raises(KeyDerivationError):
            Node(make_config(path)).init()

        mock_connect.assert_not_called()

    @patch("cybercar_sdk.node.CarContract", side_effect=ValueError("Invalid contract address"))
    @patch("cybercar_sdk.node.connect")
    def test_bind_failure_is_rpc_error(self, mock_connect, mock_car, mnemonic_file):
        with pytest.raises(RpcError, match="Cannot bind contract"):
            Node(make_config(mnemonic_file)).init()

    def test_cancelled_before_init(self, mnemonic_file):
        token = CancelToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            Node(make_config(mnemonic_file)).init(token)

    def test_methods_require_init(self, mnemonic_file):
        node = Node(make_config(mnemonic_file))

        with pytest.raises(RuntimeError):
            node.paused()
        with pytest.raises(RuntimeError):
            node.address


class TestQueries:
    """Read-only contract queries."""

    def test_mint_quota(self, node, mock_contract):
        mock_contract.call.return_value = (1, 3)

        quota = node.mint_quota(TEST_ADDRESS_1.lower())

        assert quota == Quota(minted=1, cap=3)
        mock_contract.call.assert_called_once_with("mintQuota", TEST_ADDRESS_1, cancel=None)

    def test_airdrop_quota(self, node, mock_contract):
        mock_contract.call.return_value = [0, 2]

        assert node.airdrop_quota(TEST_ADDRESS_0) == Quota(minted=0, cap=2)
        assert mock_contract.call.call_args[0][0] == "airdropQuota"

    def test_quota_rejects_bad_owner(self, node, mock_contract):
        with pytest.raises(ValueError, match="Invalid address"):
            node.mint_quota("0xnope")
        mock_contract.call.assert_not_called()

    def test_paused_and_phase(self, node, mock_contract):
        mock_contract.call.side_effect = [True, 2]

        assert node.paused() is True
        assert node.phase() == 2

    def test_snapshot_skips_failed_lookups(self, node, mock_contract):
        def call(method, *args, cancel=None, block_identifier="latest"):
            assert block_identifier == 1000
            if method == "totalSupply":
                return 3
            if args[0] == 2:
                raise RpcError("call ownerOf failed: nonexistent token")
            return TEST_ADDRESS_0 if args[0] == 1 else TEST_ADDRESS_1

        mock_contract.call.side_effect = call

        assert list(node.snapshot(1000)) == [(1, TEST_ADDRESS_0), (3, TEST_ADDRESS_1)]

    def test_snapshot_stops_on_cancel(self, node, mock_contract):
        token = CancelToken()
        mock_contract.call.side_effect = [5, TEST_ADDRESS_0]

        rows = node.snapshot(1, token)
        assert next(rows) == (1, TEST_ADDRESS_0)
        token.cancel()
        with pytest.raises(OperationCancelledError):
            next(rows)


class TestWrites:
    """Admin writes through the lifecycle manager."""

    def test_add_whitelist(self, node, mock_contract, mock_chain):
        receipt = node.add_whitelist([TEST_ADDRESS_0.lower(), TEST_ADDRESS_1], 3)

        assert receipt.tx_hash == TEST_TX_HASH
        ctx, method, owners, amount = mock_contract.transact.call_args[0]
        assert method == "addWhitelist"
        assert owners == [TEST_ADDRESS_0, TEST_ADDRESS_1]
        assert amount == 3
        assert ctx.nonce == 5
        assert node.manager.state is TxState.CONFIRMED

    @pytest.mark.parametrize("method", ["add_airdrop", "add_reserve"])
    def test_other_lists(self, node, mock_contract, method):
        getattr(node, method)([TEST_ADDRESS_1], 1)

        expected = {"add_airdrop": "addAirdrop", "add_reserve": "addReserve"}[method]
        assert mock_contract.transact.call_args[0][1] == expected

    @pytest.mark.parametrize("owners, amount, match", [
        ([TEST_ADDRESS_0], 256, "amount"),
        ([TEST_ADDRESS_0], -1, "amount"),
        ([], 1, "empty"),
        (["0x12"], 1, "Invalid address"),
    ])
    def test_add_list_validation(self, node, mock_contract, owners, amount, match):
        with pytest.raises(ValueError, match=match):
            node.add_airdrop(owners, amount)
        mock_contract.transact.assert_not_called()

    def test_pause_when_already_paused(self, node, mock_contract):
        mock_contract.call.return_value = True

        assert node.pause() is None
        mock_contract.transact.assert_not_called()

    def test_unpause_sends_transaction(self, node, mock_contract):
        mock_contract.call.return_value = True

        receipt = node.unpause()

        assert receipt.succeeded
        assert mock_contract.transact.call_args[0][1] == "unpause"

    def test_set_phase(self, node, mock_contract):
        node.set_phase(2)

        assert mock_contract.transact.call_args[0][1:] == ("setPhase", 2)

    def test_set_phase_out_of_range(self, node, mock_contract):
        with pytest.raises(ValueError, match="int8"):
            node.set_phase(128)
        mock_contract.transact.assert_not_called()

    def test_reverted_write(self, node, mock_chain):
        mock_chain.transaction_receipt.return_value = make_receipt(status=0)

        with pytest.raises(TransactionRevertedError) as exc_info:
            node.set_phase(1)

        assert exc_info.value.tx_hash == TEST_TX_HASH
        assert node.manager.state is TxState.REVERTED
