import logging
from enum import Enum, unique
from typing import Dict, List, Mapping

from atlas_scientific.drivers.i2c_bus import Transport
from atlas_scientific.exceptions import ParseError, ValidationError
from atlas_scientific.response_parser import ReplyField, ReplyPattern, decimal, text
from atlas_scientific.sensor import AtlasSensor

""" Driver for the EZO conductivity circuit

The circuit can report up to four measurements from a single reading. Which of them it
reports is configured on the device, one output parameter at a time, and a reading is just
their values separated by commas, e.g. "1413,707" with EC and TDS enabled. Values carry no
names: they can only be interpreted by position, in the order the device gives in reply to
"O,?". That order is re-fetched before every multi-value reading.
"""

logger = logging.getLogger(__name__)

# Default I2C address of an EZO EC circuit
DEFAULT_ADDRESS = 0x64

# Probe constants (K values) the circuit accepts
MIN_PROBE_TYPE = 0.1
MAX_PROBE_TYPE = 10

_OUTPUT_PARAMETER_WAIT_TIME = 0.3
_CALIBRATION_WAIT_TIME = 1.5
_DRY_CALIBRATION_WAIT_TIME = 2.0

_OUTPUT_PARAMETERS_PATTERN = ReplyPattern(
    "?O", (ReplyField("tokens", text),), last_field_takes_rest=True
)
_PROBE_TYPE_PATTERN = ReplyPattern("?K", (ReplyField("probe_type", decimal),))


@unique
class OutputParameter(Enum):
    """ Measurements the conductivity circuit can report. Values are the protocol tokens. """

    ec = "EC"  # Electrical conductivity, uS/cm
    tds = "TDS"  # Total dissolved solids, ppm
    salinity = "S"  # PSU (ppt)
    specific_gravity = "SG"

    @property
    def token(self) -> str:
        return self.value

    @classmethod
    def from_token(cls, token: str) -> "OutputParameter":
        return cls(token)


class ConductivityCalibrationPoint(Enum):
    dry = "dry"
    one = "one"  # Single point calibration
    low = "low"
    high = "high"


def _parse_output_parameter_tokens(tokens: str) -> List[OutputParameter]:
    output_parameters = []
    for index, token in enumerate(tokens.split(",")):
        try:
            output_parameters.append(OutputParameter.from_token(token))
        except ValueError:
            raise ParseError(
                f"Unable to parse output parameter {token!r} at index {index}. "
                f"Raw string: {tokens!r}"
            )
    return output_parameters


def _parse_values(
    raw_value: str, output_parameters: List[OutputParameter]
) -> Dict[OutputParameter, float]:
    values = raw_value.split(",")

    if len(values) != len(output_parameters):
        raise ValidationError(
            f"Output parameter count mismatch. Output parameters: "
            f"{[p.token for p in output_parameters]}, values: {values}, raw string: {raw_value!r}"
        )

    try:
        return {
            output_parameter: decimal(value)
            for output_parameter, value in zip(output_parameters, values)
        }
    except ValueError as e:
        raise ParseError(f"Reading {raw_value!r} could not be parsed: {e}") from e


class ConductivityProbe(AtlasSensor):
    """
    Args:
        transport: Transport for the bus the probe is attached to
        address: I2C address of the probe
        default_measurement: OutputParameter (or its token) reported by get_value()
    """

    clear_calibration_wait_time = 1.3

    def __init__(
        self,
        transport: Transport,
        address: int = DEFAULT_ADDRESS,
        default_measurement=OutputParameter.ec,
    ):
        super().__init__(transport, address)
        try:
            self.default_measurement = OutputParameter(default_measurement)
        except ValueError as e:
            raise ValidationError(f"Invalid default measurement: {e}") from e

    def initialize(self) -> None:
        """ Enable all four output parameters """
        self.set_output_parameters(
            {output_parameter: True for output_parameter in OutputParameter}
        )

    def get_value(self) -> float:
        values = self.get_all_values()

        if self.default_measurement not in values:
            raise ValidationError(
                f"{self.default_measurement.token} is not enabled on {self}. "
                f"Enabled: {[p.token for p in values]}"
            )

        return values[self.default_measurement]

    def get_all_values(self) -> Dict[OutputParameter, float]:
        """ Take one reading and return every enabled measurement in it

        Returns:
            dict of OutputParameter to value, in the order the device reports them

        Raises:
            ValidationError if the reading doesn't have one value per enabled output parameter
        """
        # Hold the guard so the enabled set can't change between the two transactions
        with self.engine.lock:
            output_parameters = self.get_output_parameters()
            raw_value = self.get_raw_value()

        return _parse_values(raw_value, output_parameters)

    def get_output_parameters(self) -> List[OutputParameter]:
        """ Example sequence:
            Write: O,?
            Wait: 300ms
            Read: ?O,EC,TDS,S,SG
        """
        fields = self.engine.write_read_parse(
            "O,?", _OUTPUT_PARAMETERS_PATTERN, _OUTPUT_PARAMETER_WAIT_TIME
        )
        return _parse_output_parameter_tokens(fields["tokens"])

    def set_output_parameters(self, enabled: Mapping) -> None:
        """ Enable or disable output parameters, one command per parameter

        Example sequence, for each parameter:
            Write: O,EC,1
            Wait: 300ms
            Read: <success, no data>

        If any command fails, the error is raised straight away. Parameters toggled before
        the failure stay toggled on the device.

        Args:
            enabled: mapping of OutputParameter (or its token) to True (enable) or False (disable)

        Raises:
            ValidationError if a key isn't an output parameter. Nothing is sent in that case.
        """
        try:
            settings = [
                (OutputParameter(output_parameter), is_enabled)
                for output_parameter, is_enabled in enabled.items()
            ]
        except ValueError as e:
            raise ValidationError(f"Invalid output parameter: {e}") from e

        with self.engine.lock:
            for output_parameter, is_enabled in settings:
                logger.debug(
                    f"{'Enabling' if is_enabled else 'Disabling'} {output_parameter.token} on {self}"
                )
                self.engine.write_read(
                    f"O,{output_parameter.token},{1 if is_enabled else 0}",
                    _OUTPUT_PARAMETER_WAIT_TIME,
                )

    def get_probe_type(self) -> float:
        """ Example sequence:
            Write: K,?
            Wait: 300ms
            Read: ?K,0.66
        """
        return self.engine.write_read_parse("K,?", _PROBE_TYPE_PATTERN)["probe_type"]

    def set_probe_type(self, probe_type: float) -> None:
        """ Set the probe constant (K value), between 0.1 and 10

        Raises:
            ValidationError if probe_type is out of range. Nothing is sent in that case.
        """
        if not MIN_PROBE_TYPE <= probe_type <= MAX_PROBE_TYPE:
            raise ValidationError(
                f"Invalid probe type {probe_type!r}. "
                f"Must be between {MIN_PROBE_TYPE} and {MAX_PROBE_TYPE}."
            )

        self.engine.write_read(f"K,{probe_type:f}")

    def calibrate(self, point, ec_value: float = None) -> None:
        """ Calibrate one point, either dry or against a solution of known conductivity

        Example sequences:
            Write: CAL,dry              Write: CAL,low,12880
            Wait: 2000ms                Wait: 1500ms
            Read: <success, no data>    Read: <success, no data>

        Args:
            point: ConductivityCalibrationPoint, or its name ("dry", "one", "low" or "high")
            ec_value: conductivity of the calibration solution in uS/cm. Truncated to an
                integer. Not used for a dry calibration.

        Raises:
            ValidationError if point isn't a conductivity calibration point, or ec_value is
                missing for a wet one
        """
        try:
            point = ConductivityCalibrationPoint(point)
        except ValueError:
            raise ValidationError(
                f"Invalid conductivity calibration point {point!r}. "
                f"Valid values: {', '.join(p.value for p in ConductivityCalibrationPoint)}"
            )

        if point == ConductivityCalibrationPoint.dry:
            self.engine.write_read("CAL,dry", _DRY_CALIBRATION_WAIT_TIME)
            return

        if ec_value is None:
            raise ValidationError(f"A conductivity value is required for {point.value}")

        self.engine.write_read(
            f"CAL,{point.value},{int(ec_value)}", _CALIBRATION_WAIT_TIME
        )
