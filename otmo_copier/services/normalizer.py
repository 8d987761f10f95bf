"""Raw OTMO event → canonical, venue-agnostic trade event.

All functions are pure computation with no I/O, no database access.
"""

import math

from otmo_copier.errors import ValidationError
from otmo_copier.schemas.events import (
    EventType,
    NormalizedTradeEvent,
    PositionSide,
    SourceTradeEvent,
)

_SIDE_ALIASES = {
    "LONG": PositionSide.LONG,
    "BUY": PositionSide.LONG,
    "SHORT": PositionSide.SHORT,
    "SELL": PositionSide.SHORT,
}

_NON_NEGATIVE = ("size_usd", "price", "leverage")


def idempotency_key(source_trade_id: str, event_type: EventType | str, venue: str) -> str:
    """Deterministic key for one (trade, event type, venue) attempt."""
    type_value = event_type.value if isinstance(event_type, EventType) else str(event_type).upper()
    return f"{source_trade_id}:{type_value}:{venue.lower()}"


def normalize(event: SourceTradeEvent, default_venue: str) -> NormalizedTradeEvent:
    """Resolve venue, validate identity and default the optional numerics.

    Raises ValidationError when the event cannot be identified (no trade id or
    event type) or carries a value that cannot be interpreted.
    """
    raw = event.model_dump()

    source_trade_id = (event.source_trade_id or "").strip()
    if not source_trade_id:
        raise ValidationError("missing source trade id", raw=raw)

    type_text = (event.event_type or "").strip().upper()
    if not type_text:
        raise ValidationError(f"missing event type for trade {source_trade_id}", raw=raw)
    try:
        event_type = EventType(type_text)
    except ValueError:
        raise ValidationError(f"unknown event type '{event.event_type}' for trade {source_trade_id}", raw=raw)

    side = None
    if event.side:
        side = _SIDE_ALIASES.get(event.side.strip().upper())
        if side is None:
            raise ValidationError(f"unknown position side '{event.side}' for trade {source_trade_id}", raw=raw)

    # No NaN or inf past this point
    for name in ("size_usd", "price", "leverage", "take_profit", "stop_loss"):
        value = getattr(event, name)
        if value is None:
            continue
        if not math.isfinite(value):
            raise ValidationError(f"non-finite {name} for trade {source_trade_id}", raw=raw)
        if value < 0 and name in _NON_NEGATIVE:
            raise ValidationError(f"negative {name} for trade {source_trade_id}", raw=raw)

    venue = (event.venue or default_venue).strip().lower()

    return NormalizedTradeEvent(
        source_trade_id=source_trade_id,
        trader_id=(event.trader_id or "").strip(),
        event_type=event_type,
        symbol=(event.symbol or "").strip().upper(),
        side=side,
        size_usd=event.size_usd if event.size_usd is not None else 0.0,
        price=event.price if event.price is not None else 0.0,
        leverage=event.leverage if event.leverage is not None else 1.0,
        take_profit=event.take_profit,
        stop_loss=event.stop_loss,
        venue=venue,
        timestamp=event.timestamp,
        idempotency_key=idempotency_key(source_trade_id, event_type, venue),
    )
