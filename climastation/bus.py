"""Abstract I2C bus used by the sensor and display drivers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class I2CError(OSError):
    """Raised when an I2C transfer fails or a device answers incorrectly."""


class I2CBus(ABC):
    """A blocking I2C master.

    Implementations raise :class:`I2CError` when a transfer fails.
    """

    @abstractmethod
    def write(self, address: int, data: bytes, nostop: bool = False) -> None:
        """Write ``data`` to the device at ``address``.

        With ``nostop`` set the bus is kept for a repeated start.
        """

    @abstractmethod
    def read(self, address: int, length: int, nostop: bool = False) -> bytes:
        """Read ``length`` bytes from the device at ``address``."""