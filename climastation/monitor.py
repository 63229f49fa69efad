"""Threshold analysis, alarm indicators, buzzer timing and page selection."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .aht20 import Reading

SEA_LEVEL_PRESSURE = 101325.0

NUM_PIXELS = 25

BUZZER_LEVEL = 250
BEEP_INTERVAL_US = 250_000
BEEP_TOGGLES = 8

DEBOUNCE_US = 250_000
PAGE_COUNT = 4

_LIT = 0.2

# 5x5 LED matrix drawings, row by row.
PATTERNS: tuple[tuple[float, ...], ...] = tuple(
    tuple(_LIT if cell == "#" else 0.0 for cell in "".join(rows))
    for rows in (
        ("#.#.#", ".###.", "#####", ".###.", "#.#.#"),
        ("#####", "#####", "###.#", "#.#.#", "#...#"),
        ("..#..", ".###.", "#.#.#", "..#..", "..#.."),
        ("..#..", "..#..", "#.#.#", ".###.", "..#.."),
        (".....", ".....", "#####", ".....", "....."),
        (".....", ".###.", "#####", "#...#", ".###."),
        (".#.#.", "#.#.#", ".###.", "#.#.#", ".#.#."),
    )
)


@dataclass
class Limits:
    """Alarm thresholds: degrees Celsius, percent humidity and hPa."""

    temp_min: float = 5.0
    temp_max: float = 55.0
    humidity_min: float = 30.0
    humidity_max: float = 70.0
    pressure_min: float = 950.0
    pressure_max: float = 1050.0


@dataclass
class Offsets:
    """Calibration offsets added to readings; pressure is in hPa."""

    temperature: float = 0.0
    humidity: float = 0.0
    pressure: float = 0.0


class Alarm(Enum):
    """Outcome of one analysis and how it is shown on the indicators."""

    HIGH_TEMPERATURE = ("Temperatura elevada", 1, (255, 0, 0), (True, False, False))
    LOW_TEMPERATURE = (
        "Sistema operando em temperaturas críticas",
        0,
        (0, 0, 255),
        (False, False, True),
    )
    HIGH_HUMIDITY = ("Umidade muito elevada", 3, (0, 255, 255), (False, True, True))
    LOW_HUMIDITY = ("Umidade em situação crítica", 2, (255, 165, 0), (True, True, False))
    HIGH_PRESSURE = ("Pressão muito alta", 5, (0, 100, 255), (True, False, True))
    LOW_PRESSURE = ("Pressão muito baixa", 6, (255, 200, 0), (False, False, True))
    NORMAL = ("", 4, (0, 255, 0), (False, True, False))

    def __init__(
        self,
        message: str,
        pattern_index: int,
        colour: tuple[int, int, int],
        leds: tuple[bool, bool, bool],
    ) -> None:
        self.message = message
        self.pattern_index = pattern_index
        self.colour = colour
        self.leds = leds

    @property
    def pattern(self) -> tuple[float, ...]:
        """The LED matrix drawing for this state."""
        return PATTERNS[self.pattern_index]

    @property
    def active(self) -> bool:
        """True when this state should sound the buzzer."""
        return self is not Alarm.NORMAL

    def frame(self) -> list[int]:
        """The GRB words to send to the LED matrix for this state."""
        return pattern_frame(self.pattern, *self.colour)


def calculate_altitude(pressure: float) -> float:
    """Estimate altitude in metres from a pressure in pascal."""
    return 44330.0 * (1.0 - math.pow(pressure / SEA_LEVEL_PRESSURE, 0.1903))


def urgb_u32(r: int, g: int, b: int) -> int:
    """Pack an RGB colour into the GRB word used by WS2812 LEDs."""
    return ((r & 0xFF) << 8) | ((g & 0xFF) << 16) | (b & 0xFF)


def pattern_frame(pattern: Sequence[float], r: int, g: int, b: int) -> list[int]:
    """Return one GRB word per pixel: the colour where lit, otherwise 0."""
    if len(pattern) != NUM_PIXELS:
        raise ValueError(f"pattern must have {NUM_PIXELS} cells, got {len(pattern)}")
    colour = urgb_u32(r, g, b)
    return [colour if cell else 0 for cell in pattern]


def _hectopascal(pressure_pa: int) -> int:
    quotient = abs(int(pressure_pa)) // 100
    return quotient if pressure_pa >= 0 else -quotient


def analyse(reading: Reading, pressure_pa: int, limits: Limits, offsets: Offsets) -> Alarm:
    """Compare calibrated readings with the limits and return the alarm state.

    Temperature is checked first, then humidity, then pressure.
    """
    temperature = reading.temperature + offsets.temperature
    humidity = reading.humidity + offsets.humidity
    pressure = _hectopascal(pressure_pa) + offsets.pressure

    if temperature > limits.temp_max:
        return Alarm.HIGH_TEMPERATURE
    if temperature < limits.temp_min:
        return Alarm.LOW_TEMPERATURE
    if humidity > limits.humidity_max:
        return Alarm.HIGH_HUMIDITY
    if humidity < limits.humidity_min:
        return Alarm.LOW_HUMIDITY
    if pressure > limits.pressure_max:
        return Alarm.HIGH_PRESSURE
    if pressure < limits.pressure_min:
        return Alarm.LOW_PRESSURE
    return Alarm.NORMAL


class Buzzer:
    """Beeping pattern: toggles every 250 ms, eight toggles per burst."""

    def __init__(self) -> None:
        self.active = False
        self.on = False
        self.cycles = 0
        self.level = 0
        self.last_toggle_us = 0

    def trigger(self, now_us: int) -> None:
        """Start a burst unless one is already running."""
        if not self.active:
            self.active = True
            self.last_toggle_us = now_us
            self.cycles = 0

    def silence(self) -> None:
        """Stop a running burst and mute the output."""
        if self.active:
            self.active = False
            self.level = 0

    def update(self, now_us: int) -> int:
        """Advance the burst and return the PWM level to drive."""
        if not self.active:
            return self.level
        if now_us - self.last_toggle_us >= BEEP_INTERVAL_US:
            self.last_toggle_us = now_us
            self.on = not self.on
            self.level = BUZZER_LEVEL if self.on else 0
            self.cycles += 1
            if self.cycles >= BEEP_TOGGLES:
                self.active = False
                self.level = 0
                self.cycles = 0
        return self.level


class PageSelector:
    """Debounced button that cycles through the display pages."""

    def __init__(self) -> None:
        self.page = 0
        self.alternate = False
        self.last_press_us = 0

    def press(self, now_us: int) -> bool:
        """Register a button press; return False if it was debounced away."""
        if now_us - self.last_press_us < DEBOUNCE_US:
            return False
        self.last_press_us = now_us
        self.page = (self.page + 1) % PAGE_COUNT
        self.alternate = not self.alternate
        return True