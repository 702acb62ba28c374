"""Phrases and rules tied to the tracking site's rendering.

Kept as plain data so a change on the site only touches this module.
"""
from __future__ import annotations

from typing import Tuple

from .models import TrackingStatus

# A line containing any of these starts a new tracking event.
ANCHOR_PHRASES: Tuple[str, ...] = (
    "Objeto em transferência",
    "Objeto postado",
    "Objeto entregue",
    "Objeto não entregue",
    "Etiqueta emitida",
    "Objeto saiu",
    "Objeto recebido",
    "Objeto aguardando retirada",
    "Objeto devolvido",
    "Objeto encaminhado",
    "Objeto retido",
    "Objeto roubado",
    "Objeto extraviado",
    "Objeto avariado",
    "Fiscalização aduaneira",
    "Aguardando pagamento",
    "Pagamento confirmado",
    "Tentativa de entrega",
    "Saída para entrega",
    "Objeto coletado",
    "Coleta solicitada",
    "Logística reversa",
    "Destinatário ausente",
    "Endereço incorreto",
    "Endereço insuficiente",
    "Objeto em trânsito",
    "Objeto disponível",
)

# Lines starting with these label the kind of unit handling the object.
LOCATION_TYPE_PREFIXES: Tuple[str, ...] = (
    "Unidade de Tratamento",
    "Unidade de Distribuição",
    "Postado",
)

# Comma-separated lines mentioning these are page chrome, not locations.
BRAND_TOKENS: Tuple[str, ...] = ("CORREIOS", "HAGA")

NOT_FOUND_MARKERS: Tuple[str, ...] = ("não encontrado", "not found")

# Ordered: the first rule whose keywords appear in the latest event wins.
STATUS_RULES: Tuple[Tuple[Tuple[str, ...], TrackingStatus], ...] = (
    (("entregue ao destinatário", "objeto entregue"), TrackingStatus.DELIVERED),
    (("não entregue", "destinatário ausente"), TrackingStatus.DELIVERY_ATTEMPT),
    (("saiu para entrega", "saída para entrega"), TrackingStatus.OUT_FOR_DELIVERY),
    (("aguardando retirada",), TrackingStatus.AWAITING_PICKUP),
    (("devolvido",), TrackingStatus.RETURNED),
    (("retido", "fiscalização"), TrackingStatus.HELD_AT_CUSTOMS),
    (("extraviado", "roubado"), TrackingStatus.LOST),
    (("avariado",), TrackingStatus.DAMAGED),
    (("aguardando pagamento",), TrackingStatus.AWAITING_PAYMENT),
    (("transferência", "trânsito", "encaminhado"), TrackingStatus.IN_TRANSIT),
    (("postado", "coletado"), TrackingStatus.POSTED),
    (("etiqueta",), TrackingStatus.LABEL_ISSUED),
)

FALLBACK_STATUS = TrackingStatus.PROCESSING
EMPTY_STATUS = TrackingStatus.DATA_OBTAINED

__all__ = [
    "ANCHOR_PHRASES",
    "LOCATION_TYPE_PREFIXES",
    "BRAND_TOKENS",
    "NOT_FOUND_MARKERS",
    "STATUS_RULES",
    "FALLBACK_STATUS",
    "EMPTY_STATUS",
]
