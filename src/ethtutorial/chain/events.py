"""
Contract event watching and decoding.

``EventWatcher`` installs an ``eth_newFilter`` for one contract and
polls it from a background thread, handing each decoded log to a
callback.  Decoding dispatches on ``topics[0]``: indexed parameters come
from the remaining topics, everything else from the ABI-encoded data.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Optional

import httpx
from eth_abi import decode
from eth_abi.exceptions import DecodingError

from ..errors import RpcError
from ..units import wei_to_token
from ..utils import hex_to_bytes, to_int, topic_to_address
from . import rpc
from .abi import canonical_type, event_ids, load_abi
from .tx import to_checksum_address

logger = logging.getLogger(__name__)

EVENT_POLL_INTERVAL = 2.0
UNKNOWN_EVENT = "Unknown"

# Transfer values are shown in whole tokens assuming 18 decimals.
TRANSFER_DISPLAY_DECIMALS = 18

_DYNAMIC_TYPES = ("string", "bytes")


@dataclass
class DecodedEvent:
    name: str
    address: str
    block_number: Optional[int]
    tx_hash: str
    log_index: Optional[int]
    topics: list[str]
    data: str
    args: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return self.name != UNKNOWN_EVENT

    @property
    def data_length(self) -> int:
        return len(hex_to_bytes(self.data or "0x"))

    @property
    def token_amount(self) -> Optional[Decimal]:
        """Transfer value in whole tokens, for Transfer events only."""
        if self.name != "Transfer" or "value" not in self.args:
            return None
        return wei_to_token(self.args["value"], TRANSFER_DISPLAY_DECIMALS)


def _decode_topic(abi_type: str, topic: str) -> Any:
    if abi_type == "address":
        return to_checksum_address(topic_to_address(topic))
    if abi_type.endswith("]") or abi_type.startswith("(") or abi_type in _DYNAMIC_TYPES:
        # indexed reference types are stored as their keccak hash
        return topic
    return decode([abi_type], hex_to_bytes(topic))[0]


def decode_log(log: dict, abi: Optional[list] = None, known: Optional[dict] = None) -> DecodedEvent:
    """
    Decode one JSON-RPC log object.

    Logs with no topics or an unrecognised ``topics[0]`` come back as an
    ``Unknown`` event with raw topics and data intact.  A known event
    whose payload does not decode keeps its name and sets ``error``.
    """
    topics = [t.lower() for t in log.get("topics") or []]
    event = DecodedEvent(
        name=UNKNOWN_EVENT,
        address=log.get("address") or "",
        block_number=to_int(log.get("blockNumber")),
        tx_hash=log.get("transactionHash") or "",
        log_index=to_int(log.get("logIndex")),
        topics=topics,
        data=log.get("data") or "0x",
    )
    if not topics:
        return event

    if known is None:
        known = event_ids(abi if abi is not None else load_abi())
    entry = known.get(topics[0])
    if entry is None:
        return event

    event.name = entry["name"]
    inputs = entry.get("inputs", [])
    indexed = [p for p in inputs if p.get("indexed")]
    plain = [p for p in inputs if not p.get("indexed")]

    try:
        if len(topics) - 1 < len(indexed):
            raise ValueError(
                f"expected {len(indexed)} indexed topics, got {len(topics) - 1}"
            )
        for param, topic in zip(indexed, topics[1:]):
            event.args[param["name"]] = _decode_topic(canonical_type(param), topic)

        if plain:
            values = decode([canonical_type(p) for p in plain], hex_to_bytes(event.data))
            for param, value in zip(plain, values):
                event.args[param["name"]] = value
    except (DecodingError, ValueError) as exc:
        event.error = str(exc)
        logger.warning("Failed to decode %s event: %s", event.name, exc)

    return event


EventHandler = Callable[[DecodedEvent], None]


class EventWatcher:
    """
    Poll a log filter for one contract on a background thread.

    Usage::

        watcher = EventWatcher(address, handler=print)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        contract_address: str,
        handler: EventHandler,
        abi: Optional[list] = None,
        poll_interval: float = EVENT_POLL_INTERVAL,
        rpc_url: Optional[str] = None,
    ):
        self.contract_address = contract_address
        self.handler = handler
        self.abi = abi if abi is not None else load_abi()
        self.poll_interval = poll_interval
        self.rpc_url = rpc_url

        self._known = event_ids(self.abi)
        self._filter_id: Optional[str] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def subscribe(self) -> str:
        """Install the log filter (from the latest block onward)."""
        if self._filter_id is None:
            self._filter_id = rpc.new_log_filter(
                address=self.contract_address, from_block="latest", rpc_url=self.rpc_url
            )
            logger.info("Watching events of %s (filter %s)", self.contract_address, self._filter_id)
        return self._filter_id

    def poll(self) -> list[DecodedEvent]:
        """Fetch and dispatch whatever arrived since the last poll."""
        filter_id = self.subscribe()
        events = [
            decode_log(log, known=self._known)
            for log in rpc.get_filter_changes(filter_id, rpc_url=self.rpc_url)
            if not log.get("removed")
        ]
        for event in events:
            if not event.is_known:
                logger.info("Unknown event signature: %s", event.topics[0] if event.topics else "-")
            try:
                self.handler(event)
            except Exception:
                logger.exception("Event handler failed for %s in tx %s", event.name, event.tx_hash)
        return events

    def run(self) -> None:
        """Blocking poll loop; returns once :meth:`stop` is called."""
        self.subscribe()
        while not self._stop.is_set():
            try:
                self.poll()
            except (RpcError, httpx.HTTPError) as exc:
                logger.error("Event subscription error: %s", exc)
                self.error = exc
                return
            self._stop.wait(self.poll_interval)

    def start(self) -> "EventWatcher":
        self.subscribe()
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run, name=f"events-{self.contract_address[:10]}", daemon=True
        )
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        logger.info("Stopping event watcher for %s", self.contract_address)
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        if self._filter_id is not None:
            try:
                rpc.uninstall_filter(self._filter_id, rpc_url=self.rpc_url)
            except (RpcError, httpx.HTTPError) as exc:
                logger.debug("Could not uninstall filter %s: %s", self._filter_id, exc)
            self._filter_id = None


def watch_contract_events(
    contract_address: str,
    handler: EventHandler,
    abi: Optional[list] = None,
    poll_interval: float = EVENT_POLL_INTERVAL,
    rpc_url: Optional[str] = None,
) -> EventWatcher:
    """Create an :class:`EventWatcher` and start it."""
    watcher = EventWatcher(
        contract_address, handler, abi=abi, poll_interval=poll_interval, rpc_url=rpc_url
    )
    return watcher.start()
