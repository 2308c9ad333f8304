"""
Registry event feed built from indexer transaction logs.

The indexer can hand back the same transaction twice (overlapping rounds,
retried pages) and pages are not guaranteed to be round-ordered, so events are
keyed by (transaction id, log index) and sorted before being handed out.
"""
import base64
import logging

from api.chain import RegistryReader
from smart_contracts.vehicle_registry.codec import RegistryEvent, decode_event

logger = logging.getLogger(__name__)


def events_from_transaction(txn: dict) -> list[RegistryEvent]:
    events = []
    txid = txn.get("id", "")
    round_ = txn.get("confirmed-round", 0)
    for log_index, log_b64 in enumerate(txn.get("logs", [])):
        event = decode_event(base64.b64decode(log_b64), txid=txid, round_=round_, log_index=log_index)
        if event is not None:
            events.append(event)
    return events


class EventFeed:
    """
    Single subscriber over the registry's events, at most once per event.

    ``min_round`` is the first round not yet delivered.
    """

    def __init__(self, reader: RegistryReader, min_round: int = 0) -> None:
        self.reader = reader
        self.min_round = min_round
        self._seen: set[tuple[str, int]] = set()

    def ingest(self, transactions: list[dict]) -> list[RegistryEvent]:
        """Return the events not seen before, oldest first."""
        fresh = []
        for txn in transactions:
            for event in events_from_transaction(txn):
                if event.key in self._seen:
                    continue
                self._seen.add(event.key)
                fresh.append(event)
        fresh.sort(key=lambda event: (event.round, event.txid, event.log_index))
        if fresh:
            # Indexer rounds are complete once confirmed; resume after the last one.
            self.min_round = max(self.min_round, fresh[-1].round + 1)
            logger.info("[EVENTS] %d new event(s), up to round %d", len(fresh), fresh[-1].round)
        return fresh

    def poll(self) -> list[RegistryEvent]:
        return self.ingest(self.reader.app_transactions(min_round=self.min_round))
