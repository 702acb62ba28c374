from datetime import datetime, timezone

import pytest

from cpf_tracker.scraper.models import TrackingEvent, TrackingResult, TrackingStatus


def test_event_requires_description() -> None:
    with pytest.raises(ValueError):
        TrackingEvent(description="")


def test_result_to_dict_shape() -> None:
    scraped_at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    result = TrackingResult(
        cpf="12345678900",
        status=TrackingStatus.IN_TRANSIT,
        events=(
            TrackingEvent(
                description="Objeto em transferência",
                date="01/01/2024 10:00:00",
                location="CAMPINAS,SP",
                location_type="Unidade de Tratamento",
            ),
        ),
        tracking_code="AB123456789BR",
        scraped_at=scraped_at,
    )

    payload = result.to_dict()

    assert payload == {
        "cpf": "12345678900",
        "tracking_code": "AB123456789BR",
        "expected_date": None,
        "status": "em trânsito",
        "events": [
            {
                "date": "01/01/2024 10:00:00",
                "location": "CAMPINAS,SP",
                "location_type": "Unidade de Tratamento",
                "description": "Objeto em transferência",
            }
        ],
        "scraped_at": "2024-01-02T03:04:05+00:00",
    }


def test_result_is_immutable() -> None:
    result = TrackingResult(cpf="1", status=TrackingStatus.NOT_FOUND)

    with pytest.raises(AttributeError):
        result.status = TrackingStatus.DELIVERED  # type: ignore[misc]
    assert result.events == ()
