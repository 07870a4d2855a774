import logging
from collections import namedtuple

from atlas_scientific.drivers.i2c_bus import Transport
from atlas_scientific.protocol import (
    DEFAULT_WAIT_TIME,
    READING_WAIT_TIME,
    ProtocolEngine,
)
from atlas_scientific.response_parser import (
    ReplyField,
    ReplyPattern,
    decimal,
    digit,
    flag,
    non_digit,
    word,
)

logger = logging.getLogger(__name__)

# Reply to STATUS, e.g. "?STATUS,P,5.038"
Status = namedtuple("Status", ["restart_code", "vcc_voltage"])

# Reply to I, e.g. "?I,pH,1.98"
DeviceInfo = namedtuple("DeviceInfo", ["type", "firmware_version"])

_STATUS_PATTERN = ReplyPattern(
    "?STATUS",
    (ReplyField("restart_code", non_digit), ReplyField("vcc_voltage", decimal)),
)
_DEVICE_INFO_PATTERN = ReplyPattern(
    "?I", (ReplyField("type", word), ReplyField("firmware_version", decimal))
)
_TEMPERATURE_COMPENSATION_PATTERN = ReplyPattern(
    "?T", (ReplyField("temperature_c", decimal),)
)
_LED_PATTERN = ReplyPattern("?L", (ReplyField("led_on", flag),))
_CALIBRATION_COUNT_PATTERN = ReplyPattern("?CAL", (ReplyField("count", digit),))


class AtlasSensor:
    """ Capabilities shared by every EZO probe. Each method is one transaction on the bus.

    Probe types subclass this and implement `get_value`. Transactions go through
    `self.engine`, which holds the transport, address and exclusive-access guard.

    Args:
        transport: Transport for the bus the probe is attached to
        address: I2C address of the probe
    """

    clear_calibration_wait_time = DEFAULT_WAIT_TIME

    def __init__(self, transport: Transport, address: int):
        self.engine = ProtocolEngine(transport, address)

    def __repr__(self):
        return f"{self.__class__.__name__}(address={self.engine.address:#04x})"

    def initialize(self) -> None:
        """ Put the probe into the state this driver expects. Nothing to do by default. """
        pass

    def get_raw_value(self) -> str:
        """ Take a single reading and return the reply payload as is

        Example sequence:
            Write: R
            Wait: 1000ms
            Read: 7.00
        """
        return self.engine.write_read("R", READING_WAIT_TIME)

    def get_value(self) -> float:
        raise NotImplementedError(
            f"{self.__class__.__name__} doesn't define how to interpret a reading"
        )

    def get_status(self) -> Status:
        """ Example sequence:
            Write: STATUS
            Wait: 300ms
            Read: ?STATUS,P,5.038
        """
        return Status(**self.engine.write_read_parse("STATUS", _STATUS_PATTERN))

    def get_device_info(self) -> DeviceInfo:
        """ Example sequence:
            Write: I
            Wait: 300ms
            Read: ?I,pH,1.98
        """
        return DeviceInfo(**self.engine.write_read_parse("I", _DEVICE_INFO_PATTERN))

    def get_temperature_compensation(self) -> float:
        fields = self.engine.write_read_parse("T,?", _TEMPERATURE_COMPENSATION_PATTERN)
        return fields["temperature_c"]

    def set_temperature_compensation(self, temperature_c: float) -> None:
        """ Set the temperature (in C) that readings are compensated for

        Example sequence:
            Write: T,19.500000
            Wait: 300ms
            Read: <success, no data>
        """
        self.engine.write_read(f"T,{temperature_c:f}")

    def get_led_status(self) -> bool:
        return self.engine.write_read_parse("L,?", _LED_PATTERN)["led_on"]

    def set_led_status(self, led_on: bool) -> None:
        self.engine.write_read("L,1" if led_on else "L,0")

    def clear_calibration(self) -> None:
        """ Delete all calibration data stored on the probe """
        logger.info(f"Clearing calibration data on {self}")
        self.engine.write_read("CAL,clear", self.clear_calibration_wait_time)

    def get_calibration_count(self) -> int:
        """ Number of calibration points stored on the probe

        Example sequence:
            Write: CAL,?
            Wait: 300ms
            Read: ?CAL,2
        """
        return self.engine.write_read_parse("CAL,?", _CALIBRATION_COUNT_PATTERN)[
            "count"
        ]
