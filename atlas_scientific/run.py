import logging
import sys
import time
from datetime import datetime

from .conductivity import ConductivityProbe
from .configure import ProbeConfiguration, get_probe_configuration
from .data_logging import collect_data_to_csv
from .drivers.i2c_bus import I2CBus, Transport
from .exceptions import AtlasScientificError, ValidationError
from .ph import PhProbe
from .sensor import AtlasSensor


def _create_probe(configuration: ProbeConfiguration, transport: Transport):
    if configuration.probe_type == "ec":
        return ConductivityProbe(
            transport,
            configuration.address,
            default_measurement=configuration.default_measurement,
        )
    return PhProbe(transport, configuration.address)


def _info(probe):
    device_info = probe.get_device_info()
    logging.info(
        f"Device type: {device_info.type}, firmware version: {device_info.firmware_version}"
    )


def _status(probe):
    status = probe.get_status()
    logging.info(
        f"Restart code: {status.restart_code}, VCC voltage: {status.vcc_voltage}"
    )


def _read(probe):
    if isinstance(probe, ConductivityProbe):
        for output_parameter, value in probe.get_all_values().items():
            logging.info(f"{output_parameter.token}: {value}")
    else:
        logging.info(f"Reading: {probe.get_value()}")


def _init(probe):
    probe.initialize()
    logging.info(f"{probe} initialized")


def _temp(probe, value):
    if value is None:
        logging.info(f"Temperature compensation: {probe.get_temperature_compensation()} C")
    else:
        probe.set_temperature_compensation(value)
        logging.info(f"Temperature compensation set to {value} C")


def _led(probe, state):
    if state is None:
        logging.info(f"LED on: {probe.get_led_status()}")
    else:
        probe.set_led_status(state)
        logging.info(f"LED turned {'on' if state else 'off'}")


def _cal_count(probe):
    logging.info(f"Calibration points stored: {probe.get_calibration_count()}")


def _cal_clear(probe):
    probe.clear_calibration()
    logging.info("Calibration cleared")


def _cal(probe, point, value):
    if isinstance(probe, PhProbe) and value is None:
        raise ValidationError("A pH value is required to calibrate a pH probe")
    probe.calibrate(point, value)
    logging.info(f"Calibrated {point}")


def _slope(probe):
    slope = probe.get_calibration_slope()
    logging.info(f"Acid slope: {slope.acid_slope}%, base slope: {slope.base_slope}%")


def _outputs(probe, changes):
    if changes:
        probe.set_output_parameters(dict(changes))
    output_parameters = probe.get_output_parameters()
    logging.info(f"Output parameters: {','.join(p.token for p in output_parameters)}")


def _k(probe, value):
    if value is None:
        logging.info(f"Probe type (K): {probe.get_probe_type()}")
    else:
        probe.set_probe_type(value)
        logging.info(f"Probe type (K) set to {value}")


def _log(probe, interval, count, output_csv_filepath):
    logging.info(f"Logging sensor data to {output_csv_filepath}")

    readings_taken = 0
    try:
        while count is None or readings_taken < count:
            if readings_taken:
                time.sleep(interval)
            row = collect_data_to_csv(probe, output_csv_filepath)
            readings_taken += 1
            logging.info(f"Reading {readings_taken}: {row.to_dict()}")
    except KeyboardInterrupt:
        logging.warning(f"Keyboard interrupt! Stopped after {readings_taken} readings")


COMMANDS = {
    "info": _info,
    "status": _status,
    "read": _read,
    "init": _init,
    "temp": _temp,
    "led": _led,
    "cal-count": _cal_count,
    "cal-clear": _cal_clear,
    "cal": _cal,
    "slope": _slope,
    "outputs": _outputs,
    "k": _k,
    "log": _log,
}


def execute(probe: AtlasSensor, configuration: ProbeConfiguration) -> None:
    COMMANDS[configuration.command](probe, **configuration.command_args)


def run(cli_args=None):
    start_date = datetime.now()

    if cli_args is None:
        # First argument is the name of the command itself, not an "argument" we want to parse
        cli_args = sys.argv[1:]
    configuration = get_probe_configuration(cli_args, start_date)

    logging_format = "%(asctime)s [%(levelname)s]--- %(message)s"
    logging.basicConfig(
        level=logging.DEBUG if configuration.verbose else logging.INFO,
        format=logging_format,
        handlers=[logging.StreamHandler()],
    )

    try:
        with I2CBus(configuration.bus_number) as bus:
            probe = _create_probe(configuration, bus)
            execute(probe, configuration)
    except AtlasScientificError as e:
        logging.error(f"{configuration.command} failed: {e}")
        sys.exit(1)
