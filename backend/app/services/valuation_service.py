from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union


@dataclass(frozen=True)
class PriceQuote:
    current_price: float
    change_percent: Optional[float] = None


# Keyed by lower-case symbol. Rebuilt on every fetch, never merged across fetches.
PriceLookup = Dict[str, PriceQuote]


@dataclass(frozen=True)
class Percent:
    value: float


class _Indeterminate:
    """Profit percent of a zero-cost holding with a non-zero price."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "INDETERMINATE"


INDETERMINATE = _Indeterminate()

ProfitPercent = Union[Percent, _Indeterminate]

PRICE_SOURCE_LIVE = "live"
PRICE_SOURCE_COST_BASIS = "cost_basis"


@dataclass
class HoldingValuation:
    holding_id: Optional[str]
    symbol: str
    coin_name: Optional[str]
    quantity: float
    purchase_price: float
    current_price: float
    change_percent: Optional[float]
    invested: float
    current_value: float
    profit: float
    profit_percent: ProfitPercent
    price_source: str


@dataclass
class Performer:
    holding_id: Optional[str]
    symbol: str
    coin_name: Optional[str]
    profit_percent: float


@dataclass
class PortfolioSummary:
    total_investment: float = 0.0
    total_current_value: float = 0.0
    total_profit: float = 0.0
    total_profit_percent: float = 0.0
    best_performer: Optional[Performer] = None
    worst_performer: Optional[Performer] = None


@dataclass
class PortfolioValuation:
    holdings: List[HoldingValuation] = field(default_factory=list)
    summary: PortfolioSummary = field(default_factory=PortfolioSummary)


def profit_percent(current_price: float, purchase_price: float) -> ProfitPercent:
    """Percent change from cost basis, tagged so a zero basis never yields inf/nan.

    A zero basis at a zero price is a flat 0%; a zero basis at any other
    price has no meaningful percentage and is INDETERMINATE.
    """
    if purchase_price == 0:
        if current_price == 0:
            return Percent(0.0)
        return INDETERMINATE
    return Percent((current_price - purchase_price) / purchase_price * 100)


def value_holding(holding, prices: PriceLookup) -> HoldingValuation:
    """Value a single holding against the current price lookup.

    The holding is read by attribute (symbol, quantity, purchase_price and,
    when present, holding_id and coin_name). A symbol missing from the
    lookup is valued at its cost basis, i.e. reported as unchanged rather
    than as a total loss.
    """
    symbol = holding.symbol.lower()
    quantity = float(holding.quantity)
    purchase_price = float(holding.purchase_price)

    quote = prices.get(symbol)
    if quote is not None:
        current_price = float(quote.current_price)
        change_percent = quote.change_percent
        source = PRICE_SOURCE_LIVE
    else:
        current_price = purchase_price
        change_percent = None
        source = PRICE_SOURCE_COST_BASIS

    return HoldingValuation(
        holding_id=getattr(holding, "holding_id", None),
        symbol=symbol,
        coin_name=getattr(holding, "coin_name", None),
        quantity=quantity,
        purchase_price=purchase_price,
        current_price=current_price,
        change_percent=change_percent,
        invested=purchase_price * quantity,
        current_value=current_price * quantity,
        profit=(current_price - purchase_price) * quantity,
        profit_percent=profit_percent(current_price, purchase_price),
        price_source=source,
    )


def _performer(valuation: HoldingValuation) -> Performer:
    return Performer(
        holding_id=valuation.holding_id,
        symbol=valuation.symbol,
        coin_name=valuation.coin_name,
        profit_percent=valuation.profit_percent.value,
    )


def summarize_valuations(valuations: Sequence[HoldingValuation]) -> PortfolioSummary:
    """Aggregate already-computed holding valuations.

    Best/worst use a single linear scan with strict comparison, so on equal
    percentages the earliest holding in input order wins. Holdings with an
    INDETERMINATE percentage take part in the totals but not in the ranking.
    """
    total_investment = 0.0
    total_current_value = 0.0
    best: Optional[HoldingValuation] = None
    worst: Optional[HoldingValuation] = None

    for valuation in valuations:
        total_investment += valuation.invested
        total_current_value += valuation.current_value

        pct = valuation.profit_percent
        if not isinstance(pct, Percent):
            continue
        if best is None or pct.value > best.profit_percent.value:
            best = valuation
        if worst is None or pct.value < worst.profit_percent.value:
            worst = valuation

    total_profit = total_current_value - total_investment
    total_profit_percent = 0.0 if total_investment == 0 else total_profit / total_investment * 100

    return PortfolioSummary(
        total_investment=total_investment,
        total_current_value=total_current_value,
        total_profit=total_profit,
        total_profit_percent=total_profit_percent,
        best_performer=_performer(best) if best is not None else None,
        worst_performer=_performer(worst) if worst is not None else None,
    )


def summarize(holdings: Sequence, prices: PriceLookup) -> PortfolioSummary:
    """Compute aggregate portfolio statistics for holdings against prices."""
    return summarize_valuations([value_holding(h, prices) for h in holdings])


def value_portfolio(holdings: Sequence, prices: PriceLookup) -> PortfolioValuation:
    """Per-holding valuations in input order plus the aggregate summary."""
    valuations = [value_holding(h, prices) for h in holdings]
    return PortfolioValuation(
        holdings=valuations,
        summary=summarize_valuations(valuations),
    )
