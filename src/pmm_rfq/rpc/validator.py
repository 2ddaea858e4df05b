"""ERC-1271 signature validation against a live chain."""

import logging

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from .client import JsonRpcClient, RpcError

logger = logging.getLogger(__name__)

IS_VALID_SIGNATURE_SELECTOR = function_signature_to_4byte_selector(
    "isValidSignature(bytes32,bytes)"
)
ERC1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")


class RpcSmartAccountValidator:
    """``SmartAccountValidator`` that asks the account contract over JSON-RPC.

    An address without code, a reverting call and any answer other than the
    magic value all mean "not valid". Transport failures propagate.
    """

    def __init__(self, client: JsonRpcClient):
        self.client = client

    def is_valid_signature(self, account: str, digest: bytes, signature: bytes) -> bool:
        if not self.client.get_code(account):
            return False

        data = IS_VALID_SIGNATURE_SELECTOR + encode(["bytes32", "bytes"], [digest, signature])
        try:
            result = self.client.eth_call(account, data)
        except RpcError as e:
            if e.code is None:
                raise
            logger.debug("isValidSignature reverted for %s: %s", account, e)
            return False

        return len(result) >= 4 and result[:4] == ERC1271_MAGIC_VALUE
