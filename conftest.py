from datetime import date, datetime, timedelta, timezone as dt_timezone
from unittest.mock import patch

import pytest
from rest_framework.test import APIClient

from guide.controller import GuideController
from guide.state import InstructionRecord
from smart_farm_platform.store import MemoryTreeStore


class FakeClock:
    def __init__(self, today=date(2025, 6, 1)):
        self.current = today

    def __call__(self):
        return self.current

    def advance(self, days):
        self.current = self.current + timedelta(days=days)


class FakeGenerator:
    """Generador en memoria: registra las llamadas y numera los textos."""

    def __init__(self, text="Riega 20 minutos al amanecer", error=None):
        self.text = text
        self.error = error
        self.calls = []
        self.on_generate = None

    def generate(self, crop, sensors, days_since_planting, crop_duration_days, language='en'):
        self.calls.append({
            'crop': crop,
            'sensors': sensors,
            'days': days_since_planting,
            'duration': crop_duration_days,
            'language': language,
        })
        if self.on_generate:
            self.on_generate()
        if self.error:
            raise self.error
        return InstructionRecord(
            text=f"{self.text} #{len(self.calls)}",
            generated_at=datetime(2025, 6, 1, 6, 0, tzinfo=dt_timezone.utc),
        )


@pytest.fixture
def store():
    return MemoryTreeStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def controller(store, generator, clock):
    return GuideController(store=store, generator=generator, clock=clock, default_language='en')


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def wired(controller, store):
    """Las vistas y servicios usan el controlador y el árbol de los tests."""
    with patch("guide.views.get_controller", return_value=controller), \
            patch("guide.services.get_controller", return_value=controller), \
            patch("farm.views.get_controller", return_value=controller), \
            patch("farm.views.get_store", return_value=store):
        yield controller
