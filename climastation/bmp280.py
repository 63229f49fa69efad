"""Driver and fixed-point compensation for the BMP280 pressure sensor."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from .bus import I2CBus, I2CError

ADDR = 0x76

REG_CONFIG = 0xF5
REG_CTRL_MEAS = 0xF4
REG_RESET = 0xE0

REG_TEMP_XLSB = 0xFC
REG_TEMP_LSB = 0xFB
REG_TEMP_MSB = 0xFA

REG_PRESSURE_XLSB = 0xF9
REG_PRESSURE_LSB = 0xF8
REG_PRESSURE_MSB = 0xF7

REG_DIG_T1_LSB = 0x88
NUM_CALIB_PARAMS = 24

RESET_WORD = 0xB6

# Standby 1000 ms, IIR filter coefficient 16, SPI 3-wire disabled.
CONFIG_VALUE = ((0x04 << 5) | (0x05 << 2)) & 0xFC
# Temperature oversampling x1, pressure oversampling x4, normal mode.
CTRL_MEAS_VALUE = (0x01 << 5) | (0x03 << 2) | 0x03

_CALIB_FORMAT = struct.Struct("<HhhHhhhhhhhh")


def _i32(value: int) -> int:
    return ((value + 0x80000000) & 0xFFFFFFFF) - 0x80000000


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


@dataclass(frozen=True)
class CalibrationParams:
    """Factory trimming coefficients stored in the sensor's NVM."""

    dig_t1: int
    dig_t2: int
    dig_t3: int
    dig_p1: int
    dig_p2: int
    dig_p3: int
    dig_p4: int
    dig_p5: int
    dig_p6: int
    dig_p7: int
    dig_p8: int
    dig_p9: int


def parse_calibration(data: bytes) -> CalibrationParams:
    """Decode the 24 little-endian calibration bytes starting at 0x88."""
    if len(data) != NUM_CALIB_PARAMS:
        raise ValueError(
            f"calibration block must be {NUM_CALIB_PARAMS} bytes, got {len(data)}"
        )
    return CalibrationParams(*_CALIB_FORMAT.unpack(bytes(data)))


def parse_raw(data: bytes) -> tuple[int, int]:
    """Decode a 6-byte burst read from 0xF7 into ``(raw_temp, raw_pressure)``."""
    if len(data) != 6:
        raise ValueError(f"measurement block must be 6 bytes, got {len(data)}")
    raw_pressure = (data[0] << 12) | (data[1] << 4) | (data[2] >> 4)
    raw_temp = (data[3] << 12) | (data[4] << 4) | (data[5] >> 4)
    return raw_temp, raw_pressure


def fine_temperature(raw_temp: int, params: CalibrationParams) -> int:
    """Return the fine-resolution temperature shared by both compensations."""
    t1, t2, t3 = params.dig_t1, params.dig_t2, params.dig_t3
    var1 = _i32(((raw_temp >> 3) - (t1 << 1)) * t2) >> 11
    delta = (raw_temp >> 4) - t1
    var2 = _i32((_i32(delta * delta) >> 12) * t3) >> 14
    return _i32(var1 + var2)


def convert_temperature(raw_temp: int, params: CalibrationParams) -> int:
    """Return the temperature in hundredths of a degree Celsius."""
    t_fine = fine_temperature(raw_temp, params)
    return _i32(t_fine * 5 + 128) >> 8


def convert_pressure(raw_pressure: int, raw_temp: int, params: CalibrationParams) -> int:
    """Return the pressure in pascal using the 32-bit integer formula.

    Returns 0 when the calibration would cause a division by zero.
    """
    t_fine = fine_temperature(raw_temp, params)

    var1 = _i32((t_fine >> 1) - 64000)
    quarter = var1 >> 2
    square = _i32(quarter * quarter)
    var2 = _i32((square >> 11) * params.dig_p6)
    var2 = _i32(var2 + (_i32(var1 * params.dig_p5) << 1))
    var2 = _i32((var2 >> 2) + (params.dig_p4 << 16))
    var1 = _i32(
        (_i32(params.dig_p3 * (square >> 13)) >> 3)
        + (_i32(params.dig_p2 * var1) >> 1)
    ) >> 18
    var1 = _i32((32768 + var1) * params.dig_p1) >> 15
    if var1 == 0:
        return 0

    divisor = _u32(var1)
    converted = _u32((_u32(1048576 - raw_pressure) - (var2 >> 12)) * 3125)
    if converted < 0x80000000:
        converted = _u32(converted << 1) // divisor
    else:
        converted = _u32((converted // divisor) * 2)

    eighth = converted >> 3
    var1 = _i32(params.dig_p9 * _i32(_u32(eighth * eighth) >> 13)) >> 12
    var2 = _i32(_i32(converted >> 2) * params.dig_p8) >> 13
    converted = _u32(_i32(converted) + (_i32(var1 + var2 + params.dig_p7) >> 4))
    return _i32(converted)


class BMP280:
    """A BMP280 attached to an I2C bus."""

    def __init__(self, bus: I2CBus, address: int = ADDR) -> None:
        self.bus = bus
        self.address = address

    def init(self) -> None:
        """Program the filter, standby time, oversampling and normal mode."""
        self.bus.write(self.address, bytes([REG_CONFIG, CONFIG_VALUE]), False)
        self.bus.write(self.address, bytes([REG_CTRL_MEAS, CTRL_MEAS_VALUE]), False)

    def reset(self) -> None:
        """Issue a soft reset."""
        self.bus.write(self.address, bytes([REG_RESET, RESET_WORD]), False)

    def _read_block(self, register: int, length: int) -> bytes:
        self.bus.write(self.address, bytes([register]), True)
        data = self.bus.read(self.address, length, False)
        if len(data) != length:
            raise I2CError(
                f"BMP280 returned {len(data)} bytes, expected {length}"
            )
        return bytes(data)

    def read_raw(self) -> tuple[int, int]:
        """Read the uncompensated ``(raw_temp, raw_pressure)`` pair."""
        return parse_raw(self._read_block(REG_PRESSURE_MSB, 6))

    def read_calibration(self) -> CalibrationParams:
        """Read the calibration coefficients from the sensor."""
        return parse_calibration(self._read_block(REG_DIG_T1_LSB, NUM_CALIB_PARAMS))