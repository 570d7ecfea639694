"""Canonical block and transaction views returned to API callers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EvmBlock:
    height: int
    hash: str
    parent_hash: str | None = None
    gas_limit: str | None = None
    gas_used: str | None = None
    size: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "height": self.height,
            "hash": self.hash,
            "parentHash": self.parent_hash,
            "gasLimit": self.gas_limit,
            "gasUsed": self.gas_used,
            "size": self.size,
        }


@dataclass(frozen=True, slots=True)
class EvmTransaction:
    hash: str
    to: str | None
    from_: str | None
    value: str | None
    input: str | None
    max_fee_per_gas: str | None = None
    max_priority_fee_per_gas: str | None = None
    gas_price: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "hash": self.hash,
            "to": self.to,
            "from": self.from_,
            "value": self.value,
            "input": self.input,
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "gasPrice": self.gas_price,
        }


@dataclass(frozen=True, slots=True)
class CosmosBlock:
    height: int
    time: str
    hash: str
    proposer_address: str

    def to_dict(self) -> dict[str, object]:
        return {
            "height": self.height,
            "time": self.time,
            "hash": self.hash,
            "proposerAddress": self.proposer_address,
        }


@dataclass(frozen=True, slots=True)
class CosmosTransaction:
    hash: str
    height: int
    time: str
    gas_used: str = "0"
    gas_wanted: str = "0"
    fee: str = "0"
    sender: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "hash": self.hash,
            "height": self.height,
            "time": self.time,
            "gasUsed": self.gas_used,
            "gasWanted": self.gas_wanted,
            "fee": self.fee,
            "sender": self.sender,
        }
