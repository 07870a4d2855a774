from collections import namedtuple
from enum import Enum

from atlas_scientific.exceptions import ParseError, ValidationError
from atlas_scientific.response_parser import ReplyField, ReplyPattern, decimal
from atlas_scientific.sensor import AtlasSensor

# Default I2C address of an EZO pH circuit
DEFAULT_ADDRESS = 0x63

_CALIBRATION_WAIT_TIME = 1.6

# Reply to SLOPE, e.g. "?SLOPE,99.7,100.3": how closely the probe matches an ideal
# probe in the acid and base ranges, as percentages
CalibrationSlope = namedtuple("CalibrationSlope", ["acid_slope", "base_slope"])

_SLOPE_PATTERN = ReplyPattern(
    "?SLOPE", (ReplyField("acid_slope", decimal), ReplyField("base_slope", decimal))
)


class PhCalibrationPoint(Enum):
    # Calibrate mid (pH 7) first: it clears the other points
    mid = "mid"
    low = "low"
    high = "high"


class PhProbe(AtlasSensor):
    def get_value(self) -> float:
        """ The reply to a reading is just the pH value, e.g. "7.00" """
        raw_value = self.get_raw_value()
        try:
            return decimal(raw_value)
        except ValueError as e:
            raise ParseError(f"pH reading {raw_value!r} could not be parsed: {e}") from e

    def get_calibration_slope(self) -> CalibrationSlope:
        """ Example sequence:
            Write: SLOPE
            Wait: 300ms
            Read: ?SLOPE,99.7,100.3
        """
        return CalibrationSlope(**self.engine.write_read_parse("SLOPE", _SLOPE_PATTERN))

    def calibrate(self, point, ph_value: float) -> None:
        """ Calibrate one point against a buffer solution of known pH

        Example sequence:
            Write: CAL,mid,7.000000
            Wait: 1600ms
            Read: <success, no data>

        Args:
            point: PhCalibrationPoint, or its name ("mid", "low" or "high")
            ph_value: pH of the buffer solution the probe is sitting in

        Raises:
            ValidationError if point isn't a pH calibration point
        """
        try:
            point = PhCalibrationPoint(point)
        except ValueError:
            raise ValidationError(
                f"Invalid pH calibration point {point!r}. "
                f"Valid values: {', '.join(p.value for p in PhCalibrationPoint)}"
            )

        self.engine.write_read(
            f"CAL,{point.value},{ph_value:f}", _CALIBRATION_WAIT_TIME
        )
