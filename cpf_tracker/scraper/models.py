"""Value objects produced by a tracking lookup."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class TrackingStatus(str, Enum):
    """Canonical shipment status, serialised with the site's Portuguese wording."""

    DELIVERED = "entregue"
    DELIVERY_ATTEMPT = "tentativa de entrega"
    OUT_FOR_DELIVERY = "saiu para entrega"
    AWAITING_PICKUP = "aguardando retirada"
    RETURNED = "devolvido"
    HELD_AT_CUSTOMS = "retido na fiscalização"
    LOST = "extraviado"
    DAMAGED = "avariado"
    AWAITING_PAYMENT = "aguardando pagamento"
    IN_TRANSIT = "em trânsito"
    POSTED = "postado"
    LABEL_ISSUED = "etiqueta emitida"
    PROCESSING = "em processamento"
    DATA_OBTAINED = "dados obtidos"
    NOT_FOUND = "não encontrado"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TrackingEvent:
    description: str
    date: Optional[str] = None
    location: Optional[str] = None
    location_type: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.description:
            raise ValueError("TrackingEvent.description must be non-empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "location": self.location,
            "location_type": self.location_type,
            "description": self.description,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TrackingResult:
    """Outcome of one scrape. ``events`` keeps page order (most recent first)."""

    cpf: str
    status: TrackingStatus
    events: Tuple[TrackingEvent, ...] = ()
    tracking_code: Optional[str] = None
    expected_date: Optional[str] = None
    scraped_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cpf": self.cpf,
            "tracking_code": self.tracking_code,
            "expected_date": self.expected_date,
            "status": self.status.value,
            "events": [event.to_dict() for event in self.events],
            "scraped_at": self.scraped_at.isoformat(),
        }


__all__ = ["TrackingStatus", "TrackingEvent", "TrackingResult"]
