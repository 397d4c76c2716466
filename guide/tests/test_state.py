from datetime import date, datetime

import pytest

from guide.crops import crop_duration, match_crop
from guide.state import (
    GuideState,
    InstructionRecord,
    SensorSnapshot,
    day_key,
    days_since_planting,
    progress_percentage,
)


def test_guide_state_from_wire_document():
    state = GuideState.from_dict({
        'active': True,
        'startDate': '2025-06-01',
        'farmerCrop': 'rice',
        'cropDuration': 120,
        'dailyInstructions': {
            '2025-06-02': {'instructions': '1. Riego ligero', 'generatedAt': '2025-06-02T05:30:00.000Z'},
        },
    })

    assert state.active
    assert state.start_date == date(2025, 6, 1)
    assert state.crop_duration_days == 120
    record = state.instructions_for('2025-06-02')
    assert record.text == '1. Riego ligero'
    assert record.generated_at.year == 2025
    assert state.is_consistent()


def test_start_date_may_come_as_full_timestamp():
    state = GuideState.from_dict({'startDate': '2025-06-01T00:00:00.000Z'})
    assert state.start_date == date(2025, 6, 1)


def test_missing_document_is_idle_state():
    state = GuideState.from_dict(None)
    assert state == GuideState()
    assert not state.active
    assert state.is_consistent()


def test_partially_active_state_is_inconsistent():
    assert not GuideState(active=True, crop='rice').is_consistent()


def test_to_dict_round_trips_wire_names():
    state = GuideState(True, date(2025, 6, 1), 'corn', 90, {
        '2025-06-01': InstructionRecord('hoy', datetime(2025, 6, 1, 6, 0)),
    })
    data = state.to_dict()
    assert data['farmerCrop'] == 'corn'
    assert data['startDate'] == '2025-06-01'
    assert data['dailyInstructions']['2025-06-01'] == {'instructions': 'hoy', 'generatedAt': '2025-06-01T06:00:00'}


def test_sensor_snapshot_accepts_field_aliases():
    snap = SensorSnapshot.from_dict({'phLevel': '6.5', 'light': 800, 'humidity': 'n/a', 'rainDetected': 1})
    assert snap.ph == 6.5
    assert snap.light_intensity == 800.0
    assert snap.humidity is None
    assert snap.rain_detected is True
    assert snap.temperature is None


def test_day_key_format():
    assert day_key(date(2025, 1, 9)) == '2025-01-09'


def test_days_since_planting_never_negative():
    assert days_since_planting(date(2025, 6, 10), date(2025, 6, 1)) == 0
    assert days_since_planting(None, date(2025, 6, 1)) == 0
    assert days_since_planting(date(2025, 6, 1), date(2025, 6, 11)) == 10


@pytest.mark.parametrize("days,duration,expected", [
    (0, 120, 0.0),
    (60, 120, 50.0),
    (120, 120, 100.0),
    (130, 120, 100.0),
    (10, None, 0.0),
    (10, 0, 0.0),
])
def test_progress_percentage(days, duration, expected):
    assert progress_percentage(days, duration) == expected


def test_progress_is_monotonic_and_clamped():
    values = [progress_percentage(d, 80) for d in range(0, 200)]
    assert values == sorted(values)
    assert max(values) == 100.0


@pytest.mark.parametrize("crop,days", [
    ('rice', 120), ('wheat', 120), ('corn', 90), ('tomato', 80), ('potato', 90),
    ('cotton', 150), ('sugarcane', 365), ('beans', 60), ('Rice ', 120), ('dragonfruit', 90), ('', 90),
])
def test_crop_duration_lookup(crop, days):
    assert crop_duration(crop) == days


def test_match_crop_from_free_text():
    assert match_crop('Rice (Paddy)') == 'rice'
    assert match_crop('Tomatoes') == 'tomato'
    assert match_crop('Various Suitable Crops') is None
    assert match_crop(None) is None


@pytest.mark.parametrize("raw, expected", [
    (True, True),
    (False, False),
    (1, True),
    (0, False),
    ('true', True),
    ('false', False),
    ('0', False),
    ('1', True),
    ('quizá', None),
    (None, None),
])
def test_rain_flag_parsing(raw, expected):
    assert SensorSnapshot.from_dict({'rainDetected': raw}).rain_detected is expected
