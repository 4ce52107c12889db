"""Receipt log decoding against a contract's event ABI.

Logs that do not decode against any event of the ABI (foreign contracts,
unknown topics, malformed data) are skipped rather than raised.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import event_abi_to_log_topic

from zkattest.contracts.abi import event_abis

_DYNAMIC_TYPES = ("string", "bytes")


@dataclass(frozen=True)
class DecodedEvent:
    """Event decoded from a receipt log."""

    name: str
    args: tuple[Any, ...]
    named: dict[str, Any]
    address: str | None = None


def decode_logs(abi: list[dict], logs: Iterable[Any]) -> Iterator[DecodedEvent]:
    """Lazily decode every log that matches an event of ``abi``."""
    topics = {event_abi_to_log_topic(event): event for event in event_abis(abi)}
    for log in logs:
        event = _decode_log(topics, log)
        if event is not None:
            yield event


def find_event(abi: list[dict], logs: Iterable[Any], name: str) -> DecodedEvent | None:
    """Return the first decoded event named ``name`` or None."""
    return next((event for event in decode_logs(abi, logs) if event.name == name), None)


def _decode_log(topics: dict[bytes, dict], log: Mapping[str, Any]) -> DecodedEvent | None:
    log_topics = [_as_bytes(t) for t in log["topics"]]
    if not log_topics or log_topics[0] not in topics:
        return None

    event = topics[log_topics[0]]
    indexed = [i for i in event["inputs"] if i.get("indexed")]
    plain = [i for i in event["inputs"] if not i.get("indexed")]
    if len(log_topics) - 1 != len(indexed):
        return None

    try:
        indexed_values = [
            _decode_topic(param["type"], topic) for param, topic in zip(indexed, log_topics[1:])
        ]
        plain_values = list(decode([i["type"] for i in plain], _as_bytes(log["data"])))
    except DecodingError:
        return None

    named: dict[str, Any] = {}
    for param, value in zip(indexed, indexed_values):
        named[param["name"]] = value
    for param, value in zip(plain, plain_values):
        named[param["name"]] = value
    args = tuple(named[i["name"]] for i in event["inputs"])
    return DecodedEvent(name=event["name"], args=args, named=named, address=log.get("address"))


def _decode_topic(abi_type: str, topic: bytes) -> Any:
    # Dynamic indexed values are stored as their keccak hash
    if abi_type in _DYNAMIC_TYPES or abi_type.endswith("]"):
        return topic
    (value,) = decode([abi_type], topic)
    return value


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    return bytes(value)
