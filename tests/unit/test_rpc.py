"""Unit tests for the JSON-RPC chain client."""

import json

import pytest
import requests
import responses

from deployment_ledger.exceptions import EstimationError, RpcError
from deployment_ledger.rpc import JsonRpcChainClient

RPC_URL = "http://test-rpc.example.com"
TX_HASH = "0x" + "ab" * 32


def rpc_result(result):
    return {"jsonrpc": "2.0", "id": 1, "result": result}


def dispatch(results):
    """Build a responses callback answering by method name."""

    def callback(request):
        body = json.loads(request.body)
        answer = results[body["method"]]
        if callable(answer):
            answer = answer(body)
        if isinstance(answer, dict) and "error" in answer:
            payload = {"jsonrpc": "2.0", "id": body["id"], **answer}
        else:
            payload = {"jsonrpc": "2.0", "id": body["id"], "result": answer}
        return (200, {}, json.dumps(payload))

    return callback


class TestCall:
    @responses.activate
    def test_request_format(self):
        def callback(request):
            body = json.loads(request.body)
            assert body["jsonrpc"] == "2.0"
            assert body["method"] == "eth_getCode"
            assert body["params"] == ["0x" + "cd" * 20, "latest"]
            return (200, {}, json.dumps(rpc_result("0x6080")))

        responses.add_callback(responses.POST, RPC_URL, callback=callback)

        assert JsonRpcChainClient(RPC_URL).get_code("0x" + "cd" * 20) == "0x6080"

    @responses.activate
    def test_rpc_error(self):
        responses.add(
            responses.POST,
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "boom"}},
        )

        with pytest.raises(RpcError, match="boom"):
            JsonRpcChainClient(RPC_URL).call("eth_blockNumber")

    @responses.activate
    def test_http_error(self):
        responses.add(responses.POST, RPC_URL, body="Bad gateway", status=502)

        with pytest.raises(RpcError, match="502"):
            JsonRpcChainClient(RPC_URL).call("eth_blockNumber")

    @responses.activate
    def test_network_error(self):
        responses.add(responses.POST, RPC_URL, body=requests.ConnectionError("refused"))

        with pytest.raises(RpcError):
            JsonRpcChainClient(RPC_URL).call("eth_blockNumber")

    @responses.activate
    def test_invalid_json(self):
        responses.add(responses.POST, RPC_URL, body="not json", status=200)

        with pytest.raises(RpcError):
            JsonRpcChainClient(RPC_URL).call("eth_blockNumber")

    @responses.activate
    @pytest.mark.parametrize("body", ["null", "42", '["0x1"]'])
    def test_non_object_response(self, body):
        responses.add(responses.POST, RPC_URL, body=body, status=200)

        with pytest.raises(RpcError, match="Malformed"):
            JsonRpcChainClient(RPC_URL).call("eth_blockNumber")


class TestMethods:
    @responses.activate
    def test_chain_id(self):
        responses.add(responses.POST, RPC_URL, json=rpc_result("0xaa36a7"))
        assert JsonRpcChainClient(RPC_URL).chain_id() == 11155111

    @responses.activate
    def test_estimate_gas(self):
        responses.add(responses.POST, RPC_URL, json=rpc_result("0x33450"))
        assert JsonRpcChainClient(RPC_URL).estimate_gas({"data": "0x6080"}) == 210000

    @responses.activate
    def test_estimate_gas_revert_raises_estimation_error(self):
        responses.add(
            responses.POST,
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "execution reverted"}},
        )

        with pytest.raises(EstimationError, match="execution reverted"):
            JsonRpcChainClient(RPC_URL).estimate_gas({"data": "0x6080"})

    @responses.activate
    def test_fee_data(self):
        responses.add_callback(
            responses.POST,
            RPC_URL,
            callback=dispatch(
                {"eth_gasPrice": "0x4a817c800", "eth_maxPriorityFeePerGas": "0x3b9aca00"}
            ),
        )

        fee_data = JsonRpcChainClient(RPC_URL).get_fee_data()
        assert fee_data.gas_price == 20_000_000_000
        assert fee_data.max_priority_fee_per_gas == 1_000_000_000

    @responses.activate
    def test_fee_data_without_priority_fee(self):
        responses.add_callback(
            responses.POST,
            RPC_URL,
            callback=dispatch(
                {
                    "eth_gasPrice": "0x4a817c800",
                    "eth_maxPriorityFeePerGas": {"error": {"code": -32601, "message": "not found"}},
                }
            ),
        )

        fee_data = JsonRpcChainClient(RPC_URL).get_fee_data()
        assert fee_data.gas_price == 20_000_000_000
        assert fee_data.max_priority_fee_per_gas is None

    @responses.activate
    def test_fee_data_without_gas_price(self):
        responses.add_callback(
            responses.POST,
            RPC_URL,
            callback=dispatch({"eth_gasPrice": None, "eth_maxPriorityFeePerGas": None}),
        )

        assert JsonRpcChainClient(RPC_URL).get_fee_data().gas_price is None

    @responses.activate
    def test_get_code_null_is_empty(self):
        responses.add(responses.POST, RPC_URL, json=rpc_result(None))
        assert JsonRpcChainClient(RPC_URL).get_code("0x" + "cd" * 20) == "0x"

    @responses.activate
    def test_send_transaction(self):
        responses.add(responses.POST, RPC_URL, json=rpc_result(TX_HASH))
        assert JsonRpcChainClient(RPC_URL).send_transaction({"data": "0x6080"}) == TX_HASH


RECEIPT = {
    "transactionHash": TX_HASH,
    "blockNumber": "0x64",
    "gasUsed": "0x33450",
    "effectiveGasPrice": "0x4a817c800",
    "contractAddress": "0x" + "cd" * 20,
    "status": "0x1",
    "from": "0x" + "ef" * 20,
}


class TestWaitForTransaction:
    @responses.activate
    def test_waits_until_depth_reached(self):
        heads = iter(["0x64", "0x65", "0x66"])
        responses.add_callback(
            responses.POST,
            RPC_URL,
            callback=dispatch(
                {
                    "eth_getTransactionReceipt": RECEIPT,
                    "eth_blockNumber": lambda body: next(heads),
                }
            ),
        )

        client = JsonRpcChainClient(RPC_URL, poll_interval=0)
        receipt = client.wait_for_transaction(TX_HASH, confirmations=3)

        assert receipt is not None
        assert receipt.block_number == 100
        assert receipt.confirmations == 3
        assert receipt.contract_address == "0x" + "cd" * 20

    @responses.activate
    def test_returns_none_after_timeout(self):
        responses.add_callback(
            responses.POST,
            RPC_URL,
            callback=dispatch({"eth_getTransactionReceipt": None}),
        )

        client = JsonRpcChainClient(RPC_URL, poll_interval=0)
        assert client.wait_for_transaction(TX_HASH, confirmations=1, timeout=0) is None

    @responses.activate
    def test_pending_receipt_without_block_keeps_waiting(self):
        pending = dict(RECEIPT, blockNumber=None)
        responses.add_callback(
            responses.POST,
            RPC_URL,
            callback=dispatch({"eth_getTransactionReceipt": pending}),
        )

        client = JsonRpcChainClient(RPC_URL, poll_interval=0)
        assert client.wait_for_transaction(TX_HASH, confirmations=1, timeout=0) is None
