"""
Per-token vesting records and their packed store.

Each token id owns exactly one record. Records are immutable values; the
store keeps them packed into a single integer word per id, laid out from
the least significant bit:

    bits   0..15   days_collected            (uint16)
    bits  16..23   initial_unlock_collected  (uint8, 0 or 1)
    bits  24..183  staker                    (uint160 address)
    bits 184..231  last_collection_timestamp (uint48)
"""

from __future__ import annotations

import string
from dataclasses import dataclass, replace
from typing import Any, Dict, List

from ..constants import (
    ADDRESS_HEX_LENGTH,
    MAX_TIMESTAMP,
    TOTAL_BERAS,
    ZERO_ADDRESS,
)
from ..exceptions import InvalidAddressError, InvalidIdentifierError, TimestampRangeError

_DAYS_BITS = 16
_FLAG_BITS = 8
_ADDRESS_BITS = 160
_TIMESTAMP_BITS = 48

_FLAG_SHIFT = _DAYS_BITS
_ADDRESS_SHIFT = _FLAG_SHIFT + _FLAG_BITS
_TIMESTAMP_SHIFT = _ADDRESS_SHIFT + _ADDRESS_BITS

_DAYS_MASK = (1 << _DAYS_BITS) - 1
_FLAG_MASK = (1 << _FLAG_BITS) - 1
_ADDRESS_MASK = (1 << _ADDRESS_BITS) - 1
_TIMESTAMP_MASK = (1 << _TIMESTAMP_BITS) - 1

RECORD_BITS = _TIMESTAMP_SHIFT + _TIMESTAMP_BITS

_HEX_DIGITS = frozenset(string.hexdigits)


def normalize_address(address: str) -> str:
    """Lower-case a ``0x``-prefixed 20-byte hex address.

    Raises:
        InvalidAddressError: If ``address`` is not a 20-byte hex address
    """
    if not isinstance(address, str):
        raise InvalidAddressError(f"Address must be a string, got {type(address).__name__}")
    addr = address.strip().lower()
    body = addr[2:]
    if (
        not addr.startswith("0x")
        or len(body) != ADDRESS_HEX_LENGTH
        or not set(body) <= _HEX_DIGITS
    ):
        raise InvalidAddressError(f"Not a 20-byte hex address: {address!r}", details={"address": address})
    return addr


def check_token_id(token_id: Any, total: int = TOTAL_BERAS) -> int:
    """Return ``token_id`` if it addresses a record, raise otherwise."""
    if isinstance(token_id, bool) or not isinstance(token_id, int):
        raise InvalidIdentifierError(token_id)
    if token_id < 0 or token_id >= total:
        raise InvalidIdentifierError(token_id)
    return token_id


@dataclass(frozen=True)
class TokenVestingRecord:
    """Accrual state of one token id.

    ``staker`` and ``last_collection_timestamp`` are both zero outside an
    accrual period and both set inside one.
    """

    days_collected: int = 0
    initial_unlock_collected: bool = False
    staker: str = ZERO_ADDRESS
    last_collection_timestamp: int = 0

    @property
    def is_active(self) -> bool:
        return self.staker != ZERO_ADDRESS or self.last_collection_timestamp != 0

    def activated(self, staker: str, now: int) -> "TokenVestingRecord":
        return replace(self, staker=staker, last_collection_timestamp=now)

    def deactivated(self) -> "TokenVestingRecord":
        return replace(self, staker=ZERO_ADDRESS, last_collection_timestamp=0)

    def advanced(self, days: int, seconds_per_day: int) -> "TokenVestingRecord":
        return replace(
            self,
            days_collected=self.days_collected + days,
            last_collection_timestamp=self.last_collection_timestamp + days * seconds_per_day,
        )

    def pack(self) -> int:
        """Pack the record into one 232-bit word."""
        if not 0 <= self.days_collected <= _DAYS_MASK:
            raise ValueError(f"days_collected out of range: {self.days_collected}")
        if not 0 <= self.last_collection_timestamp <= MAX_TIMESTAMP:
            raise TimestampRangeError(
                f"Timestamp does not fit in {_TIMESTAMP_BITS} bits: {self.last_collection_timestamp}"
            )
        staker = int(normalize_address(self.staker), 16)
        return (
            self.days_collected
            | (int(self.initial_unlock_collected) << _FLAG_SHIFT)
            | (staker << _ADDRESS_SHIFT)
            | (self.last_collection_timestamp << _TIMESTAMP_SHIFT)
        )

    @classmethod
    def unpack(cls, word: int) -> "TokenVestingRecord":
        staker = (word >> _ADDRESS_SHIFT) & _ADDRESS_MASK
        return cls(
            days_collected=word & _DAYS_MASK,
            initial_unlock_collected=bool((word >> _FLAG_SHIFT) & _FLAG_MASK),
            staker="0x" + format(staker, "040x"),
            last_collection_timestamp=(word >> _TIMESTAMP_SHIFT) & _TIMESTAMP_MASK,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days_collected": self.days_collected,
            "initial_unlock_collected": self.initial_unlock_collected,
            "staker": self.staker,
            "last_collection_timestamp": self.last_collection_timestamp,
        }


class VestingRecordStore:
    """Fixed-size array of packed records, one word per token id.

    An all-zero word is the initial record, so a fresh store costs nothing
    to build and unused ids never need a write.
    """

    def __init__(self, size: int = TOTAL_BERAS) -> None:
        self.size = size
        self._words: List[int] = [0] * size

    def get(self, token_id: int) -> TokenVestingRecord:
        return TokenVestingRecord.unpack(self._words[check_token_id(token_id, self.size)])

    def put(self, token_id: int, record: TokenVestingRecord) -> None:
        self._words[check_token_id(token_id, self.size)] = record.pack()

    def word(self, token_id: int) -> int:
        return self._words[check_token_id(token_id, self.size)]

    def snapshot(self) -> List[int]:
        return list(self._words)

    def restore(self, snapshot: List[int]) -> None:
        if len(snapshot) != self.size:
            raise ValueError("Snapshot size does not match store size")
        self._words = list(snapshot)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize non-initial records as hex words keyed by token id."""
        return {
            "size": self.size,
            "records": {str(i): hex(w) for i, w in enumerate(self._words) if w},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VestingRecordStore":
        store = cls(size=int(data.get("size", TOTAL_BERAS)))
        for key, word in data.get("records", {}).items():
            value = int(word, 16)
            if value >> RECORD_BITS:
                raise ValueError(f"Record word for token {key} exceeds {RECORD_BITS} bits")
            store.put(int(key), TokenVestingRecord.unpack(value))
        return store
