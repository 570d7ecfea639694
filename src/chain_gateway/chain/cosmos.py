"""Cosmos/Tendermint node adapter over the REST-RPC GET endpoints."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Any

from chain_gateway.chain.errors import RPCError, bad_gateway, not_found
from chain_gateway.chain.transport import HttpTransport
from chain_gateway.models import CosmosBlock, CosmosTransaction

logger = logging.getLogger(__name__)

# Tendermint reports "tx not found" as an internal error
INTERNAL_ERROR_CODE = -32603


def decode_base64(value: Any) -> str | None:
    """Decode a base64 attribute key/value to text.

    Returns None for missing, non-string, or undecodable input.
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def _events_of_type(events: Any, event_type: str) -> list[dict[str, Any]]:
    if not isinstance(events, list):
        return []
    return [e for e in events if isinstance(e, dict) and e.get("type") == event_type]


def _attributes(event: dict[str, Any]) -> list[dict[str, Any]]:
    attrs = event.get("attributes")
    if not isinstance(attrs, list):
        return []
    return [a for a in attrs if isinstance(a, dict)]


def _sender_from_log(log: Any) -> str | None:
    if not isinstance(log, str) or not log:
        return None
    try:
        entries = json.loads(log)
    except ValueError as e:
        logger.warning("Failed to parse transaction log: %s", e)
        return None
    # Only the first message's log entry is consulted.
    if not isinstance(entries, list) or not entries:
        return None
    first = entries[0]
    if not isinstance(first, dict):
        return None

    messages = _events_of_type(first.get("events"), "message")
    if not messages:
        return None
    for attr in _attributes(messages[0]):
        if attr.get("key") == "sender":
            value = attr.get("value")
            return value if isinstance(value, str) and value else None
    return None


def _sender_from_events(events: Any) -> str | None:
    for event in _events_of_type(events, "message"):
        for attr in _attributes(event):
            if decode_base64(attr.get("key")) != "sender":
                continue
            sender = decode_base64(attr.get("value"))
            if sender:
                return sender
            break
    return None


def extract_sender(tx_result: dict[str, Any]) -> str:
    """Recover the transaction sender.

    The plain-text JSON log is tried first, then the flat event list with
    base64 attributes. Returns "" when neither has a sender.
    """
    return (
        _sender_from_log(tx_result.get("log"))
        or _sender_from_events(tx_result.get("events"))
        or ""
    )


def extract_fee(events: Any) -> str:
    """Return the decoded "fee" attribute of the first "tx" event carrying one.

    Always returns "0" when the fee cannot be determined.
    """
    for event in _events_of_type(events, "tx"):
        for attr in _attributes(event):
            if decode_base64(attr.get("key")) == "fee":
                return decode_base64(attr.get("value")) or "0"
    return "0"


def check_error_envelope(data: Any) -> None:
    """Raise RPCError if the node answered with an error object."""
    if not isinstance(data, dict):
        return
    code = data.get("code")
    if code is None or code == 0:
        return

    detail = data.get("data")
    message = (
        (detail if isinstance(detail, str) and detail else None)
        or data.get("message")
        or "Unknown RPC error"
    )
    message = str(message)
    if code == INTERNAL_ERROR_CODE or "not found" in message.lower():
        raise not_found(message, code=code, data=detail)
    raise bad_gateway(f"RPC Error: {message}", code=code, data=detail)


def _now_iso() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def clean_hash(tx_hash: str) -> str:
    """Drop an optional 0x prefix and upper-case the hash."""
    if tx_hash[:2].lower() == "0x":
        tx_hash = tx_hash[2:]
    return tx_hash.upper()


class CosmosAdapter:
    def __init__(self, transport: HttpTransport):
        self.transport = transport
        logger.info(
            "Initializing Cosmos RPC client with URL: %s", transport.base_url
        )

    def call(self, endpoint: str) -> Any:
        data = self.transport.get(endpoint)
        check_error_envelope(data)
        return data

    def get_block_by_height(self, height: int) -> CosmosBlock:
        data = self.call(f"/block?height={height}")

        block = data.get("block") if isinstance(data, dict) else None
        block_id = data.get("block_id") if isinstance(data, dict) else None
        header = block.get("header") if isinstance(block, dict) else None
        block_hash = block_id.get("hash") if isinstance(block_id, dict) else None
        if not isinstance(header, dict) or not header or not block_hash:
            logger.error("Invalid block structure for height %d: %r", height, data)
            raise bad_gateway("Invalid response from RPC node")

        try:
            parsed_height = int(str(header["height"]))
        except (KeyError, TypeError, ValueError) as e:
            raise bad_gateway(f"Invalid response from RPC node: {e}") from e
        if parsed_height < 0:
            raise bad_gateway("Invalid response from RPC node")

        return CosmosBlock(
            height=parsed_height,
            time=str(header.get("time") or ""),
            hash=str(block_hash).upper(),
            proposer_address=str(header.get("proposer_address") or "").upper(),
        )

    def _lookup_tx(self, cleaned: str) -> Any:
        try:
            return self.call(f"/tx?hash={cleaned}")
        except RPCError as e:
            if not e.is_not_found or cleaned.lower() == cleaned:
                raise
            logger.info("Transaction %s not found, retrying lower-case", cleaned)
            try:
                return self.call(f"/tx?hash={cleaned.lower()}")
            except RPCError:
                raise e from None

    def transaction_time(self, height: int) -> str:
        """Block time for a transaction, or the current time if unavailable."""
        try:
            return self.get_block_by_height(height).time
        except RPCError as e:
            logger.warning(
                "Failed to get block timestamp for height %d: %s", height, e
            )
            return _now_iso()

    def get_transaction_by_hash(self, tx_hash: str) -> CosmosTransaction:
        data = self._lookup_tx(clean_hash(tx_hash))

        tx_result = data.get("tx_result") if isinstance(data, dict) else None
        if not isinstance(tx_result, dict):
            logger.error("Invalid transaction response for hash %s: %r", tx_hash, data)
            raise bad_gateway("Invalid transaction response from RPC node")

        try:
            height = int(str(data["height"]))
        except (KeyError, TypeError, ValueError) as e:
            raise bad_gateway(f"Invalid transaction response from RPC node: {e}") from e
        if height < 0 or not data.get("hash"):
            raise bad_gateway("Invalid transaction response from RPC node")

        return CosmosTransaction(
            hash=str(data["hash"]),
            height=height,
            time=self.transaction_time(height),
            gas_used=str(tx_result.get("gas_used") or "0"),
            gas_wanted=str(tx_result.get("gas_wanted") or "0"),
            fee=extract_fee(tx_result.get("events")),
            sender=extract_sender(tx_result),
        )
