"""JSON-RPC access to a live chain."""

from .client import JsonRpcClient, RpcError
from .validator import ERC1271_MAGIC_VALUE, RpcSmartAccountValidator

__all__ = [
    "JsonRpcClient",
    "RpcError",
    "RpcSmartAccountValidator",
    "ERC1271_MAGIC_VALUE",
]
