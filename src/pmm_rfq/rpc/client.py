"""Minimal Ethereum JSON-RPC client."""

import itertools
import logging
from typing import Any, List, Optional

import httpx
from eth_utils import to_bytes, to_checksum_address, to_hex

from ..errors import PmmError

logger = logging.getLogger(__name__)


class RpcError(PmmError):
    """JSON-RPC call failed.

    ``code`` is the JSON-RPC error code, or ``None`` when the request never
    produced a JSON-RPC response (transport failure, bad HTTP status).
    """

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        details = {}
        if code is not None:
            details["code"] = code
        if data is not None:
            details["data"] = data
        super().__init__(message, details)
        self.code = code
        self.data = data


class JsonRpcClient:
    """Synchronous JSON-RPC client over httpx.

    Args:
        rpc_url: Node endpoint
        http_client: Optional preconfigured ``httpx.Client`` (e.g. with a mock transport)
        timeout: Request timeout in seconds when no client is given
    """

    def __init__(
        self,
        rpc_url: str,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.rpc_url = rpc_url
        self._http_client = http_client or httpx.Client(timeout=timeout)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self._http_client.close()

    def __enter__(self) -> "JsonRpcClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Send one JSON-RPC request and return its ``result``.

        Raises:
            RpcError: On transport failure, a non-JSON or failed HTTP
                response, or a JSON-RPC error object
        """
        request = {
            "jsonrpc": "2.0",
            "method": method,
            "id": next(self._ids),
            "params": params or [],
        }
        logger.debug("RPC request: %s %s", method, request["params"])

        try:
            response = self._http_client.post(
                self.rpc_url,
                headers={"Content-Type": "application/json"},
                json=request,
            )
        except httpx.HTTPError as e:
            raise RpcError(f"RPC request failed: {e}") from e

        try:
            server_response = response.json()
        except ValueError as e:
            raise RpcError(
                f"RPC request failed: {response.status_code} {response.text}"
            ) from e

        if isinstance(server_response, dict) and "error" in server_response:
            error = server_response["error"]
            if isinstance(error, str):
                raise RpcError(f"RPC error: {error}")
            raise RpcError(
                error.get("message", "RPC error"),
                code=error.get("code"),
                data=error.get("data"),
            )

        if not response.is_success:
            raise RpcError(f"RPC request failed: {response.status_code} {response.text}")

        if not isinstance(server_response, dict) or "result" not in server_response:
            raise RpcError("RPC response has no result")

        return server_response["result"]

    def eth_call(self, to: str, data: bytes, block: str = "latest") -> bytes:
        result = self.call(
            "eth_call", [{"to": to_checksum_address(to), "data": to_hex(data)}, block]
        )
        return to_bytes(hexstr=result)

    def get_code(self, address: str, block: str = "latest") -> bytes:
        result = self.call("eth_getCode", [to_checksum_address(address), block])
        return to_bytes(hexstr=result)

    def chain_id(self) -> int:
        return int(self.call("eth_chainId"), 16)
