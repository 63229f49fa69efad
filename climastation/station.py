"""Main measurement loop: read sensors, analyse, drive the alarm outputs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from .aht20 import Reading
from .bmp280 import CalibrationParams, convert_pressure, convert_temperature
from .bus import I2CError
from .monitor import Alarm, Buzzer, analyse, calculate_altitude
from .server import MonitorState

logger = logging.getLogger(__name__)


class _PressureSensor(Protocol):
    def init(self) -> None: ...

    def read_calibration(self) -> CalibrationParams: ...

    def read_raw(self) -> tuple[int, int]: ...


class _HumiditySensor(Protocol):
    def reset(self) -> bool: ...

    def init(self) -> bool: ...

    def read(self) -> Reading: ...


@dataclass(frozen=True)
class StepResult:
    """What one pass of the loop measured and decided."""

    temperature_centi: int
    pressure_pa: int
    altitude: float
    reading: Reading | None
    alarm: Alarm | None
    buzzer_level: int

    @property
    def frame(self) -> list[int] | None:
        """GRB words for the LED matrix, or None if nothing was analysed."""
        return self.alarm.frame() if self.alarm else None


@dataclass
class Station:
    """Reads a BMP280 and an AHT20 and keeps the shared state up to date."""

    bmp: _PressureSensor
    aht: _HumiditySensor
    state: MonitorState = field(default_factory=MonitorState)
    buzzer: Buzzer = field(default_factory=Buzzer, init=False)
    params: CalibrationParams = field(init=False)

    def __post_init__(self) -> None:
        self.bmp.init()
        self.params = self.bmp.read_calibration()
        self.aht.reset()
        self.aht.init()

    def step(self, now_us: int) -> StepResult:
        """Run one pass of the loop at time ``now_us`` (microseconds)."""
        self.buzzer.update(now_us)
        raw_temp, raw_pressure = self.bmp.read_raw()
        temperature = convert_temperature(raw_temp, self.params)
        pressure = convert_pressure(raw_pressure, raw_temp, self.params)
        altitude = calculate_altitude(pressure)
        logger.info("Altitude estimada: %.2f m", altitude)

        try:
            reading: Reading | None = self.aht.read()
        except I2CError:
            reading = None
            logger.warning("Erro na leitura do AHT20")

        alarm: Alarm | None = None
        with self.state.lock:
            self.state.pressure_pa = pressure
            if reading is not None:
                self.state.reading = reading
                alarm = analyse(reading, pressure, self.state.limits, self.state.offsets)
                self.state.alarm = alarm

        if alarm is not None:
            if alarm.active:
                logger.warning(alarm.message)
                self.buzzer.trigger(now_us)
            else:
                self.buzzer.silence()

        return StepResult(
            temperature_centi=temperature,
            pressure_pa=pressure,
            altitude=altitude,
            reading=reading,
            alarm=alarm,
            buzzer_level=self.buzzer.level,
        )