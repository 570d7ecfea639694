"""EVM node adapter using raw JSON-RPC 2.0 via requests."""

from __future__ import annotations

import logging
from typing import Any

from chain_gateway.chain.errors import bad_gateway, not_found
from chain_gateway.chain.transport import HttpTransport
from chain_gateway.models import EvmBlock, EvmTransaction

logger = logging.getLogger(__name__)


def encode_height(height: int) -> str:
    """Encode a block height as a 0x-prefixed hex quantity."""
    return hex(height)


def decode_hex(value: str) -> int:
    """Decode a 0x-prefixed hex quantity. Raises ValueError on bad input."""
    return int(value, 16)


def build_envelope(method: str, params: list[Any]) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "method": method,
        "params": params,
        "id": 1,
    }


class EvmAdapter:
    def __init__(self, transport: HttpTransport):
        self.transport = transport
        logger.info("Initializing EVM RPC client with URL: %s", transport.base_url)

    def call(self, method: str, params: list[Any]) -> Any:
        """Issue one JSON-RPC call and return its result.

        Raises RPCError: NOT_FOUND for a null result or a "not found" error
        message, BAD_GATEWAY for everything else.
        """
        data = self.transport.post("", build_envelope(method, params))
        if not isinstance(data, dict):
            raise bad_gateway("RPC returned a non-object response")

        err = data.get("error")
        if err is not None:
            if not isinstance(err, dict):
                err = {"message": str(err)}
            message = str(err.get("message", "unknown"))
            code = err.get("code")
            if "not found" in message.lower():
                raise not_found(f"Resource not found: {message}", code=code)
            raise bad_gateway(
                f"RPC Error: {message} (code: {code})",
                code=code,
                data=err.get("data"),
            )

        result = data.get("result")
        if result is None:
            raise not_found()
        return result

    def get_block_by_height(self, height: int) -> EvmBlock:
        block = self.call("eth_getBlockByNumber", [encode_height(height), False])
        try:
            size = block.get("size")
            parsed = EvmBlock(
                height=decode_hex(block["number"]),
                hash=block["hash"],
                parent_hash=block.get("parentHash"),
                gas_limit=block.get("gasLimit"),
                gas_used=block.get("gasUsed"),
                size=decode_hex(size) if size is not None else None,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("Invalid block structure for height %d: %r", height, block)
            raise bad_gateway(f"Invalid response from RPC node: {e}") from e

        if parsed.height < 0 or not parsed.hash:
            raise bad_gateway("Invalid response from RPC node")
        return parsed

    def get_transaction_by_hash(self, tx_hash: str) -> EvmTransaction:
        tx = self.call("eth_getTransactionByHash", [tx_hash])
        try:
            parsed = EvmTransaction(
                hash=tx["hash"],
                to=tx.get("to"),
                from_=tx.get("from"),
                value=tx.get("value"),
                input=tx.get("input"),
                max_fee_per_gas=tx.get("maxFeePerGas") or None,
                max_priority_fee_per_gas=tx.get("maxPriorityFeePerGas") or None,
                gas_price=tx.get("gasPrice") or None,
            )
        except (KeyError, TypeError, AttributeError) as e:
            logger.error("Invalid transaction structure for %s: %r", tx_hash, tx)
            raise bad_gateway(f"Invalid response from RPC node: {e}") from e

        if not parsed.hash:
            raise bad_gateway("Invalid response from RPC node")
        return parsed
