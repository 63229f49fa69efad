"""Driver for the AHT20 temperature and humidity sensor."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from .bus import I2CBus, I2CError

AHT20_I2C_ADDR = 0x38

CMD_INIT = 0xBE
CMD_TRIGGER = 0xAC
CMD_RESET = 0xBA

STATUS_BUSY = 0x80
STATUS_CALIBRATED = 0x08

_POLL_ATTEMPTS = 10
_FULL_SCALE = 1048576.0


@dataclass(frozen=True)
class Reading:
    """A temperature in degrees Celsius and a relative humidity in percent."""

    temperature: float
    humidity: float


def parse_measurement(data: bytes) -> Reading:
    """Decode the 6-byte measurement frame (status byte first)."""
    if len(data) != 6:
        raise ValueError(f"measurement frame must be 6 bytes, got {len(data)}")
    raw_humidity = (data[1] << 12) | (data[2] << 4) | (data[3] >> 4)
    raw_temp = ((data[3] & 0x0F) << 16) | (data[4] << 8) | data[5]
    return Reading(
        temperature=raw_temp * 200.0 / _FULL_SCALE - 50.0,
        humidity=raw_humidity * 100.0 / _FULL_SCALE,
    )


class AHT20:
    """An AHT20 attached to an I2C bus."""

    def __init__(
        self,
        bus: I2CBus,
        address: int = AHT20_I2C_ADDR,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.bus = bus
        self.address = address
        self._sleep = sleep

    def _status(self) -> int:
        data = self.bus.read(self.address, 1, False)
        if len(data) != 1:
            raise I2CError("AHT20 did not return a status byte")
        return data[0]

    def init(self) -> bool:
        """Send the initialisation command; return True once calibrated."""
        self.bus.write(self.address, bytes([CMD_INIT, 0x08, 0x00]), False)
        self._sleep(0.05)
        for _ in range(_POLL_ATTEMPTS):
            if self._status() & STATUS_CALIBRATED == STATUS_CALIBRATED:
                return True
            self._sleep(0.01)
        return False

    def read(self) -> Reading:
        """Trigger a measurement and return it.

        Raises :class:`I2CError` if the sensor stays busy or the frame is short.
        """
        self.bus.write(self.address, bytes([CMD_TRIGGER, 0x33, 0x00]), False)
        status = STATUS_BUSY
        for _ in range(_POLL_ATTEMPTS):
            status = self._status()
            if not status & STATUS_BUSY:
                break
            self._sleep(0.01)
        if status & STATUS_BUSY:
            raise I2CError("AHT20 is still busy")

        frame = self.bus.read(self.address, 6, False)
        if len(frame) != 6:
            raise I2CError(f"AHT20 returned {len(frame)} bytes, expected 6")
        return parse_measurement(bytes(frame))

    def reset(self) -> bool:
        """Soft-reset the sensor and initialise it again."""
        self.bus.write(self.address, bytes([CMD_RESET]), False)
        self._sleep(0.02)
        return self.init()

    def check(self) -> bool:
        """Return True if the sensor answers a one-byte read."""
        try:
            return len(self.bus.read(self.address, 1, False)) == 1
        except I2CError:
            return False