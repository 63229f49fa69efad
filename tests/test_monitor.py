import pytest

from climastation.aht20 import Reading
from climastation.monitor import (
    BEEP_TOGGLES,
    BUZZER_LEVEL,
    NUM_PIXELS,
    PATTERNS,
    Alarm,
    Buzzer,
    Limits,
    Offsets,
    PageSelector,
    analyse,
    calculate_altitude,
    pattern_frame,
    urgb_u32,
)

NORMAL_READING = Reading(temperature=25.0, humidity=50.0)
NORMAL_PRESSURE = 101325


def test_altitude_zero_at_sea_level():
    assert calculate_altitude(101325.0) == pytest.approx(0.0)


def test_altitude_decreases_with_pressure():
    assert calculate_altitude(90000) > calculate_altitude(95000) > 0
    assert calculate_altitude(105000) < 0


@pytest.mark.parametrize("r,g,b", [(255, 0, 0), (0, 255, 0), (0, 0, 255), (12, 34, 56)])
def test_urgb_round_trip(r, g, b):
    word = urgb_u32(r, g, b)
    assert ((word >> 8) & 0xFF, (word >> 16) & 0xFF, word & 0xFF) == (r, g, b)


def test_urgb_green_in_high_byte():
    assert urgb_u32(0, 255, 0) == 0xFF0000


def test_pattern_frame_matches_cells():
    colour = urgb_u32(1, 2, 3)
    for pattern in PATTERNS:
        frame = pattern_frame(pattern, 1, 2, 3)
        assert len(frame) == NUM_PIXELS
        assert [bool(cell) for cell in pattern] == [word == colour for word in frame]
        assert all(word in (0, colour) for word in frame)


def test_pattern_frame_rejects_wrong_length():
    with pytest.raises(ValueError):
        pattern_frame([0.2] * 24, 1, 1, 1)


def test_normal_frame_lights_middle_row():
    frame = Alarm.NORMAL.frame()
    green = urgb_u32(0, 255, 0)
    assert frame[10:15] == [green] * 5
    assert sum(1 for word in frame if word) == 5


def test_analyse_normal():
    assert analyse(NORMAL_READING, NORMAL_PRESSURE, Limits(), Offsets()) is Alarm.NORMAL
    assert not Alarm.NORMAL.active


@pytest.mark.parametrize(
    "reading,pressure,expected",
    [
        (Reading(60.0, 50.0), NORMAL_PRESSURE, Alarm.HIGH_TEMPERATURE),
        (Reading(0.0, 50.0), NORMAL_PRESSURE, Alarm.LOW_TEMPERATURE),
        (Reading(25.0, 80.0), NORMAL_PRESSURE, Alarm.HIGH_HUMIDITY),
        (Reading(25.0, 10.0), NORMAL_PRESSURE, Alarm.LOW_HUMIDITY),
        (NORMAL_READING, 106000, Alarm.HIGH_PRESSURE),
        (NORMAL_READING, 90000, Alarm.LOW_PRESSURE),
    ],
)
def test_analyse_alarms(reading, pressure, expected):
    result = analyse(reading, pressure, Limits(), Offsets())
    assert result is expected
    assert result.active


def test_temperature_checked_before_humidity_and_pressure():
    reading = Reading(60.0, 10.0)
    assert analyse(reading, 90000, Limits(), Offsets()) is Alarm.HIGH_TEMPERATURE


def test_offsets_shift_readings():
    offsets = Offsets(temperature=40.0)
    assert analyse(NORMAL_READING, NORMAL_PRESSURE, Limits(), offsets) is Alarm.HIGH_TEMPERATURE
    offsets = Offsets(pressure=-100.0)
    assert analyse(NORMAL_READING, NORMAL_PRESSURE, Limits(), offsets) is Alarm.LOW_PRESSURE


def test_pressure_truncated_to_whole_hectopascal():
    limits = Limits(pressure_max=1050.0)
    assert analyse(NORMAL_READING, 105099, limits, Offsets()) is Alarm.NORMAL
    assert analyse(NORMAL_READING, 105100, limits, Offsets()) is Alarm.HIGH_PRESSURE


def test_limit_boundaries_are_inclusive():
    limits = Limits(temp_min=25.0, temp_max=25.0)
    assert analyse(NORMAL_READING, NORMAL_PRESSURE, limits, Offsets()) is Alarm.NORMAL


def test_buzzer_idle_does_nothing():
    buzzer = Buzzer()
    assert buzzer.update(10_000_000) == 0
    assert not buzzer.active


def test_buzzer_burst_sequence():
    buzzer = Buzzer()
    buzzer.trigger(0)
    assert buzzer.active
    assert buzzer.update(100_000) == 0
    levels = [buzzer.update(250_000 * step) for step in range(1, BEEP_TOGGLES + 1)]
    assert levels[:-1] == [BUZZER_LEVEL, 0] * 3 + [BUZZER_LEVEL]
    assert levels[-1] == 0
    assert not buzzer.active
    assert buzzer.cycles == 0


def test_buzzer_trigger_while_active_keeps_timing():
    buzzer = Buzzer()
    buzzer.trigger(0)
    buzzer.trigger(200_000)
    assert buzzer.last_toggle_us == 0
    assert buzzer.update(250_000) == BUZZER_LEVEL


def test_buzzer_silence_mutes():
    buzzer = Buzzer()
    buzzer.trigger(0)
    buzzer.update(250_000)
    buzzer.silence()
    assert not buzzer.active
    assert buzzer.update(1_000_000) == 0


def test_page_selector_debounce_and_cycle():
    selector = PageSelector()
    assert selector.press(100_000) is False
    assert selector.page == 0
    pages = []
    for step in range(1, 5):
        assert selector.press(300_000 * step) is True
        pages.append(selector.page)
    assert pages == [1, 2, 3, 0]
    assert selector.alternate is False


def test_page_selector_ignores_bounce():
    selector = PageSelector()
    assert selector.press(1_000_000)
    assert not selector.press(1_100_000)
    assert selector.page == 1
    assert selector.alternate is True
    assert selector.press(1_250_000)
    assert selector.page == 2