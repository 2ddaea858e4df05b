"""Tests for the JSON-RPC client and ERC-1271 validator."""

import json

import httpx
import pytest

from pmm_rfq.rpc import ERC1271_MAGIC_VALUE, JsonRpcClient, RpcError, RpcSmartAccountValidator

RPC_URL = "https://rpc.example.invalid"
ACCOUNT = "0x" + "44" * 20
DIGEST = b"\x42" * 32


def make_client(handler) -> JsonRpcClient:
    return JsonRpcClient(RPC_URL, http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def rpc_handler(results):
    """Answer each method from ``results``; callables get the request params."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        answer = results[body["method"]]
        if callable(answer):
            answer = answer(body["params"])
        if isinstance(answer, dict) and "error" in answer:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **answer})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": answer})

    handler.requests = requests
    return handler


class TestJsonRpcClient:
    """Tests for JsonRpcClient."""

    def test_chain_id(self):
        """Test a successful call."""
        handler = rpc_handler({"eth_chainId": "0xa4b1"})
        client = make_client(handler)

        assert client.chain_id() == 42161
        assert handler.requests[0]["jsonrpc"] == "2.0"
        assert handler.requests[0]["params"] == []

    def test_get_code(self):
        """Test that hex results are decoded to bytes."""
        client = make_client(rpc_handler({"eth_getCode": "0x6080"}))
        assert client.get_code(ACCOUNT) == b"\x60\x80"

    def test_json_rpc_error(self):
        """Test that a JSON-RPC error object raises RpcError with its code."""
        client = make_client(
            rpc_handler(
                {"eth_call": {"error": {"code": 3, "message": "execution reverted", "data": "0x"}}}
            )
        )
        with pytest.raises(RpcError, match="execution reverted") as exc_info:
            client.eth_call(ACCOUNT, b"\x00")
        assert exc_info.value.code == 3
        assert exc_info.value.data == "0x"

    def test_http_error(self):
        """Test that a non-JSON HTTP failure raises RpcError without a code."""
        client = make_client(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(RpcError, match="502") as exc_info:
            client.chain_id()
        assert exc_info.value.code is None

    def test_transport_error(self):
        """Test that transport failures are wrapped."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RpcError, match="connection refused"):
            make_client(handler).chain_id()

    def test_missing_result(self):
        """Test that a response without a result is rejected."""
        client = make_client(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1}))
        with pytest.raises(RpcError, match="no result"):
            client.chain_id()


class TestRpcSmartAccountValidator:
    """Tests for ERC-1271 over JSON-RPC."""

    def test_valid(self):
        """Test that the magic value means valid and the call is well formed."""
        handler = rpc_handler(
            {"eth_getCode": "0x6080", "eth_call": "0x" + ERC1271_MAGIC_VALUE.hex() + "00" * 28}
        )
        validator = RpcSmartAccountValidator(make_client(handler))

        assert validator.is_valid_signature(ACCOUNT, DIGEST, b"\x01" * 65) is True
        call = handler.requests[1]["params"][0]
        assert call["data"].startswith("0x1626ba7e")
        assert call["to"] == ACCOUNT

    def test_no_code(self):
        """Test that an address without code is never valid."""
        handler = rpc_handler({"eth_getCode": "0x"})
        validator = RpcSmartAccountValidator(make_client(handler))

        assert validator.is_valid_signature(ACCOUNT, DIGEST, b"\x01" * 65) is False
        assert [r["method"] for r in handler.requests] == ["eth_getCode"]

    def test_wrong_magic(self):
        """Test that any other return value is invalid."""
        handler = rpc_handler({"eth_getCode": "0x6080", "eth_call": "0x" + "ff" * 32})
        validator = RpcSmartAccountValidator(make_client(handler))
        assert validator.is_valid_signature(ACCOUNT, DIGEST, b"\x01" * 65) is False

    def test_revert(self):
        """Test that a reverting isValidSignature is invalid."""
        handler = rpc_handler(
            {
                "eth_getCode": "0x6080",
                "eth_call": {"error": {"code": 3, "message": "execution reverted"}},
            }
        )
        validator = RpcSmartAccountValidator(make_client(handler))
        assert validator.is_valid_signature(ACCOUNT, DIGEST, b"\x01" * 65) is False

    def test_transport_failure_propagates(self):
        """Test that network failures are not mistaken for a rejection."""
        client = make_client(lambda request: httpx.Response(502, text="bad gateway"))
        with pytest.raises(RpcError):
            RpcSmartAccountValidator(client).is_valid_signature(ACCOUNT, DIGEST, b"")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
