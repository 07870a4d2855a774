import logging
import threading
from abc import ABC, abstractmethod

from smbus2 import SMBus, i2c_msg

from atlas_scientific.exceptions import TransportError

logger = logging.getLogger(__name__)

# Default bus on a Raspberry Pi (/dev/i2c-1)
DEFAULT_BUS_NUMBER = 1


class Transport(ABC):
    """ Addressable byte read/write primitive shared by every probe on one physical bus.

    Devices on one bus have no transaction IDs: a reply is matched to its command
    purely by ordering. `lock` is therefore owned by the transport, and every probe
    constructed over it holds that same lock for the whole of each transaction.
    """

    def __init__(self):
        self.lock = threading.RLock()

    @abstractmethod
    def write(self, address: int, data: bytes) -> None:
        ...

    @abstractmethod
    def read(self, address: int, length: int) -> bytes:
        ...


class I2CBus(Transport):
    """ Transport over a Linux I2C character device, e.g. /dev/i2c-1

    Args:
        bus_number: number of the I2C bus to open
    """

    def __init__(self, bus_number: int = DEFAULT_BUS_NUMBER):
        super().__init__()
        self.bus_number = bus_number
        try:
            self._bus = SMBus(bus_number)
        except OSError as e:
            raise TransportError(f"Unable to open I2C bus {bus_number}: {e}") from e

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self._bus.close()

    def write(self, address: int, data: bytes) -> None:
        logger.debug(f"I2C write on bus {self.bus_number} to {address:#04x}: {data!r}")

        try:
            self._bus.i2c_rdwr(i2c_msg.write(address, data))
        except OSError as e:
            raise TransportError(
                f"Write to {address:#04x} on I2C bus {self.bus_number} failed: {e}"
            ) from e

    def read(self, address: int, length: int) -> bytes:
        message = i2c_msg.read(address, length)

        try:
            self._bus.i2c_rdwr(message)
        except OSError as e:
            raise TransportError(
                f"Read from {address:#04x} on I2C bus {self.bus_number} failed: {e}"
            ) from e

        data = bytes(message)
        logger.debug(f"I2C read on bus {self.bus_number} from {address:#04x}: {data!r}")

        return data
