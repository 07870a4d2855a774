import logging
import time
from typing import Dict

from atlas_scientific.drivers.i2c_bus import Transport
from atlas_scientific.exceptions import (
    DeviceError,
    NoDataError,
    ParseError,
    PendingTimeoutError,
)
from atlas_scientific.response_parser import ReplyPattern, parse_reply
from atlas_scientific.retry import retry_on_exception

""" Request/reply transactions with an Atlas Scientific EZO probe in I2C mode

Excerpts from the datasheets:

A command is written to the device as plain ASCII. The device then needs a documented processing
time (300ms for most commands, 900ms+ for a reading, longer for calibration) before its reply is
valid. Reading too early returns the "still processing" status code.

Every reply is read as a fixed 64 byte frame:

    byte 0      Response code
                    1   Successful request
                    2   Syntax error
                    254 Still processing, not ready
                    255 No data to send
    byte 1..n   ASCII payload, padded with NUL bytes to the end of the frame

There are no transaction IDs. A reply belongs to whichever command was last written to the
address, so the write, the wait and the read must never be interleaved with another command.
"""

RESPONSE_FRAME_LENGTH = 64

SUCCESS_STATUS = 1

_STATUS_TO_ERROR = {
    DeviceError.status: DeviceError,
    PendingTimeoutError.status: PendingTimeoutError,
    NoDataError.status: NoDataError,
}

# Processing times, in seconds
DEFAULT_WAIT_TIME = 0.3
READING_WAIT_TIME = 1.0

logger = logging.getLogger(__name__)


def check_status(frame: bytes) -> None:
    """ Raise the ReadError subclass matching the frame's status byte, if any.
    Status codes the datasheet doesn't document are let through as success.
    """
    error_class = _STATUS_TO_ERROR.get(frame[0])
    if error_class is not None:
        raise error_class()


def extract_payload(frame: bytes) -> str:
    """ Drop the status byte and the NUL padding and decode what's left """
    try:
        return frame[1:].rstrip(b"\x00").decode("ascii")
    except UnicodeDecodeError as e:
        raise ParseError(f"Reply {frame!r} is not ASCII") from e


class ProtocolEngine:
    """ Device handle for one probe: a bus address on a shared transport

    Args:
        transport: Transport for the bus the probe is attached to. Not owned by the engine.
        address: 7-bit I2C address of the probe
    """

    def __init__(self, transport: Transport, address: int):
        self.transport = transport
        self._address = address

    @property
    def address(self) -> int:
        return self._address

    @property
    def lock(self):
        """ Exclusive-access guard. Hold it across the write, wait and read of a transaction. """
        return self.transport.lock

    def write(self, command: str) -> None:
        logger.debug(f"Command to {self.address:#04x}: {command}")

        with self.lock:
            self.transport.write(self.address, command.encode("ascii"))

    def _read_frame(self) -> bytes:
        frame = self.transport.read(self.address, RESPONSE_FRAME_LENGTH)
        check_status(frame)
        return frame

    def perform_read(self, wait_time: float) -> str:
        """ Wait for the device to process the last command, then read and unframe its reply.
        If the device is still processing, wait the same time again and read exactly once more.

        Args:
            wait_time: documented processing time of the command just written, in seconds

        Returns:
            ASCII payload of the reply (possibly empty)

        Raises:
            DeviceError, NoDataError: on those status codes, without retrying
            PendingTimeoutError: if the device is still processing after the retry
            TransportError: if the bus read fails
        """
        read_frame_with_retry = retry_on_exception(
            PendingTimeoutError, interval=wait_time
        )(self._read_frame)

        with self.lock:
            time.sleep(wait_time)
            frame = read_frame_with_retry()

        payload = extract_payload(frame)
        logger.debug(f"Reply from {self.address:#04x}: {payload!r}")

        return payload

    def write_read(self, command: str, wait_time: float = DEFAULT_WAIT_TIME) -> str:
        """ One complete transaction: write `command`, wait, and return the reply payload """
        with self.lock:
            self.write(command)
            return self.perform_read(wait_time)

    def write_read_parse(
        self, command: str, pattern: ReplyPattern, wait_time: float = DEFAULT_WAIT_TIME
    ) -> Dict:
        """ One complete transaction whose reply is parsed with `pattern`

        Raises:
            ParseError if the reply payload doesn't match the pattern
        """
        with self.lock:
            payload = self.write_read(command, wait_time)

        return parse_reply(pattern, payload)
