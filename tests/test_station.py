import pytest

from climastation.aht20 import Reading
from climastation.bmp280 import CalibrationParams, convert_pressure, convert_temperature
from climastation.bus import I2CError
from climastation.monitor import BUZZER_LEVEL, Alarm, Limits, calculate_altitude
from climastation.server import MonitorState
from climastation.station import Station

PARAMS = CalibrationParams(
    27504, 26435, -1000, 36477, -10685, 3024, 2855, 140, -7, 15500, -14600, 6000
)
RAW_TEMP = 519888
RAW_PRESSURE = 415148


class FakeBMP:
    def __init__(self):
        self.initialised = False

    def init(self):
        self.initialised = True

    def read_calibration(self):
        return PARAMS

    def read_raw(self):
        return RAW_TEMP, RAW_PRESSURE


class FakeAHT:
    def __init__(self, readings):
        self.readings = list(readings)
        self.calls = []

    def reset(self):
        self.calls.append("reset")
        return True

    def init(self):
        self.calls.append("init")
        return True

    def read(self):
        item = self.readings.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _state():
    return MonitorState(limits=Limits(pressure_min=-1e9, pressure_max=1e9))


NORMAL = Reading(25.0, 50.0)
HOT = Reading(60.0, 50.0)


def test_construction_initialises_sensors():
    bmp, aht = FakeBMP(), FakeAHT([])
    station = Station(bmp, aht, _state())
    assert bmp.initialised
    assert aht.calls == ["reset", "init"]
    assert station.params == PARAMS


def test_step_stores_compensated_values():
    state = _state()
    station = Station(FakeBMP(), FakeAHT([NORMAL]), state)
    result = station.step(0)
    expected_pressure = convert_pressure(RAW_PRESSURE, RAW_TEMP, PARAMS)
    assert result.pressure_pa == expected_pressure
    assert state.pressure_pa == expected_pressure
    assert result.temperature_centi == convert_temperature(RAW_TEMP, PARAMS)
    assert result.altitude == pytest.approx(calculate_altitude(expected_pressure))
    assert state.reading == NORMAL


def test_normal_reading_keeps_buzzer_quiet():
    station = Station(FakeBMP(), FakeAHT([NORMAL]), _state())
    result = station.step(0)
    assert result.alarm is Alarm.NORMAL
    assert result.buzzer_level == 0
    assert not station.buzzer.active
    assert result.frame == Alarm.NORMAL.frame()


def test_high_temperature_starts_beeping():
    state = _state()
    station = Station(FakeBMP(), FakeAHT([HOT, HOT]), state)
    first = station.step(0)
    assert first.alarm is Alarm.HIGH_TEMPERATURE
    assert state.alarm is Alarm.HIGH_TEMPERATURE
    assert station.buzzer.active
    second = station.step(250_000)
    assert second.buzzer_level == BUZZER_LEVEL


def test_offsets_are_applied_before_analysis():
    state = _state()
    state.offsets.temperature = 10.0
    station = Station(FakeBMP(), FakeAHT([Reading(50.0, 50.0)]), state)
    assert station.step(0).alarm is Alarm.HIGH_TEMPERATURE


def test_recovery_silences_buzzer():
    station = Station(FakeBMP(), FakeAHT([HOT, HOT, NORMAL]), _state())
    station.step(0)
    assert station.step(250_000).buzzer_level == BUZZER_LEVEL
    result = station.step(300_000)
    assert result.alarm is Alarm.NORMAL
    assert result.buzzer_level == 0
    assert not station.buzzer.active


def test_humidity_sensor_failure_skips_analysis():
    state = _state()
    station = Station(FakeBMP(), FakeAHT([NORMAL, I2CError("busy")]), state)
    station.step(0)
    result = station.step(500_000)
    assert result.reading is None
    assert result.alarm is None
    assert result.frame is None
    assert state.reading == NORMAL
    assert state.pressure_pa == convert_pressure(RAW_PRESSURE, RAW_TEMP, PARAMS)