"""
Cost model and daily cost ledger.

Pricing is a fixed table: no dynamic fetching and no default price. A model
missing from the table is a configuration error and fails fast.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from agent.errors import UnknownModelError
from agent.models import CostBreakdown, DailyCostSummary

logger = logging.getLogger(__name__)

_FOUR_PLACES = Decimal("0.0001")


@dataclass(frozen=True)
class ModelPricing:
    name: str
    input_price_per_1k: Decimal
    output_price_per_1k: Decimal


MODEL_PRICING: dict[str, ModelPricing] = {
    "gpt-4o-mini": ModelPricing(
        name="GPT-4o-Mini",
        input_price_per_1k=Decimal("0.15"),
        output_price_per_1k=Decimal("0.075"),
    ),
    "gpt-4o": ModelPricing(
        name="GPT-4o",
        input_price_per_1k=Decimal("2.50"),
        output_price_per_1k=Decimal("1.25"),
    ),
    "claude-3-5-haiku-latest": ModelPricing(
        name="Claude 3.5 Haiku",
        input_price_per_1k=Decimal("0.80"),
        output_price_per_1k=Decimal("4.00"),
    ),
    "claude-3-5-sonnet-latest": ModelPricing(
        name="Claude 3.5 Sonnet",
        input_price_per_1k=Decimal("3.00"),
        output_price_per_1k=Decimal("15.00"),
    ),
}


def get_pricing(model: str) -> ModelPricing:
    try:
        return MODEL_PRICING[model]
    except KeyError:
        raise UnknownModelError(model) from None


def round_cost(value: Decimal | float) -> float:
    """Round to 4 decimal places, half away from zero."""
    return float(Decimal(str(value)).quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP))


def calculate_cost(input_tokens: int, output_tokens: int, model: str) -> CostBreakdown:
    """Cost of one request.

    Raises:
        UnknownModelError: If ``model`` has no pricing entry.
    """
    pricing = get_pricing(model)
    input_cost = Decimal(input_tokens) / Decimal(1000) * pricing.input_price_per_1k
    output_cost = Decimal(output_tokens) / Decimal(1000) * pricing.output_price_per_1k
    return CostBreakdown(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        input_cost=round_cost(input_cost),
        output_cost=round_cost(output_cost),
        total_cost=round_cost(input_cost + output_cost),
        model=model,
    )


# ── alerting ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CostAlert:
    should_alert: bool
    level: str  # "warning" | "danger"
    message: str = ""

    def to_dict(self) -> dict:
        return {"shouldAlert": self.should_alert, "level": self.level, "message": self.message}


def check_cost_alert(
    daily_cost: float,
    warning: float | None = None,
    danger: float | None = None,
) -> CostAlert:
    """Tier a daily total against the warning and danger thresholds."""
    if warning is None or danger is None:
        from config import settings
        warning = settings.cost_warning_threshold if warning is None else warning
        danger = settings.cost_danger_threshold if danger is None else danger

    if daily_cost >= danger:
        return CostAlert(
            should_alert=True,
            level="danger",
            message=f"Daily cost is high: ${daily_cost:.4f} (limit: ${danger:g})",
        )
    if daily_cost >= warning:
        return CostAlert(
            should_alert=True,
            level="warning",
            message=f"Daily cost is elevated: ${daily_cost:.4f} (limit: ${danger:g})",
        )
    return CostAlert(should_alert=False, level="warning")


# ── ledger ────────────────────────────────────────────────────────────────────

def _day_key(day: date | str | None) -> str:
    if day is None:
        return date.today().isoformat()
    if isinstance(day, date):
        return day.isoformat()
    return day


class CostLedger:
    """Append-only per-day cost ledger.

    Appends are serialized by a lock so concurrent requests never lose an
    entry. Reset clears one day only.
    """

    def __init__(self, store, warning: float | None = None, danger: float | None = None):
        self._store = store
        self._lock = threading.Lock()
        self._warning = warning
        self._danger = danger

    def append(self, breakdown: CostBreakdown, day: date | str | None = None) -> DailyCostSummary:
        key = _day_key(day)
        with self._lock:
            self._store.save_entry(key, breakdown)
            summary = self._load(key)
        logger.info(
            "Cost recorded for %s: $%.4f (%s); day total $%.4f over %d requests",
            key, breakdown.total_cost, breakdown.model, summary.total_cost, summary.request_count,
        )
        alert = check_cost_alert(summary.total_cost, self._warning, self._danger)
        if alert.should_alert:
            logger.warning("%s", alert.message)
        return summary

    def summary(self, day: date | str | None = None) -> DailyCostSummary | None:
        key = _day_key(day)
        with self._lock:
            summary = self._load(key)
        return summary if summary.request_count else None

    def alert(self, day: date | str | None = None) -> CostAlert:
        summary = self.summary(day)
        total = summary.total_cost if summary else 0.0
        return check_cost_alert(total, self._warning, self._danger)

    def reset(self, day: date | str | None = None) -> int:
        key = _day_key(day)
        with self._lock:
            removed = self._store.delete_day(key)
        logger.info("Cost ledger reset for %s (%d entries removed)", key, removed)
        return removed

    def _load(self, key: str) -> DailyCostSummary:
        summary = DailyCostSummary(date=key)
        total = Decimal(0)
        for row in self._store.get_entries(key):
            entry = CostBreakdown(
                input_tokens=row["input_tokens"],
                output_tokens=row["output_tokens"],
                input_cost=row["input_cost"],
                output_cost=row["output_cost"],
                total_cost=row["total_cost"],
                model=row["model"],
                timestamp=datetime.fromisoformat(row["created_at"]),
            )
            summary.breakdown.append(entry)
            total += Decimal(str(entry.total_cost))
        summary.request_count = len(summary.breakdown)
        summary.total_cost = round_cost(total)
        if summary.breakdown:
            summary.model = summary.breakdown[0].model
        return summary
