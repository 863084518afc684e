"""
Daily Inventory Timeline Reconstruction

Shopify does not reliably keep inventory history on every plan, so the
availability timeline is approximated by one of two policies:

  forward   : sum each day's adjustment deltas into that day's slot
              (change volume, not a running balance)
  backward  : anchor on the current snapshot and walk back through the
              window, adding each day's sales back onto the balance

The policy is chosen once per deployment so every SKU in a report is
classified the same way. Both return a value for every day in the window.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Iterable, Mapping, Optional, Type

from app.exceptions import ConfigurationError
from app.models.inventory_report import DailyAvailability, StockEvent
from app.utils.helpers import enumerate_days
from app.utils.logger import log

# Which per-item sub-fetch feeds a policy
SOURCE_HISTORY = "history"
SOURCE_SNAPSHOT = "snapshot"


class ReconstructionPolicy(ABC):
    """Strategy interface for building a DailyAvailability series"""

    name: str = ""
    source: str = ""

    @abstractmethod
    def reconstruct(
        self,
        start: date,
        end: date,
        events: Iterable[StockEvent],
        sales_by_day: Optional[Mapping[date, int]] = None
    ) -> DailyAvailability:
        """
        Build the availability series for one item

        Args:
            start: First day of the window (inclusive)
            end: Last day of the window (inclusive)
            events: Stock events for the item
            sales_by_day: Units sold per day for the item's SKU

        Returns:
            Mapping with exactly one entry per day in [start, end]
        """
        pass

    def empty_series(self, start: date, end: date) -> DailyAvailability:
        """All-zero series, used for items without inventory data"""
        return {day: 0 for day in enumerate_days(start, end)}


class ForwardAccumulationPolicy(ReconstructionPolicy):
    """
    Per-day sum of adjustment deltas.

    Known approximation: offsetting same-day adjustments cancel out and a
    day without adjustments reads as zero even if stock was on hand.
    Only the "> 0" predicate is meaningful downstream.
    """

    name = "forward"
    source = SOURCE_HISTORY

    def reconstruct(self, start, end, events, sales_by_day=None):
        series = self.empty_series(start, end)

        for event in events:
            if event.kind != "delta" or event.delta is None:
                continue
            if event.occurred_on in series:
                series[event.occurred_on] += event.delta

        return series


class BackwardReconstructionPolicy(ReconstructionPolicy):
    """
    Running balance walked back from the current snapshot.

    The anchor is the sum of the latest snapshot of every item in the events
    (items sharing a SKU are reconstructed together).

    Each day is assigned the running total, then that day's sales are added
    so the day before reads as the quantity before those sales happened.
    """

    name = "backward"
    source = SOURCE_SNAPSHOT

    def reconstruct(self, start, end, events, sales_by_day=None):
        days = enumerate_days(start, end)
        sales_by_day = sales_by_day or {}

        latest: Dict[str, StockEvent] = {}
        for event in events:
            if event.kind != "snapshot" or event.snapshot_quantity is None:
                continue
            current = latest.get(event.item_id)
            if current is None or event.occurred_on >= current.occurred_on:
                latest[event.item_id] = event
        anchor = sum(e.snapshot_quantity for e in latest.values())

        series: DailyAvailability = {}
        running = anchor
        for day in reversed(days):
            series[day] = running
            running += sales_by_day.get(day, 0)

        # Keep chronological key order for callers that serialize the series
        return {day: series[day] for day in days}


POLICIES: Dict[str, Type[ReconstructionPolicy]] = {
    ForwardAccumulationPolicy.name: ForwardAccumulationPolicy,
    BackwardReconstructionPolicy.name: BackwardReconstructionPolicy,
}


def get_policy(name: str) -> ReconstructionPolicy:
    """
    Resolve a configured policy name

    Raises:
        ConfigurationError: unknown policy name
    """
    key = (name or "").strip().lower()
    if key not in POLICIES:
        raise ConfigurationError(f"Unknown reconstruction policy {name!r}; expected one of {sorted(POLICIES)}")

    log.debug(f"Using {key} inventory reconstruction policy")
    return POLICIES[key]()

