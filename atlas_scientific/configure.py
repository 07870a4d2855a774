import argparse
from collections import namedtuple
from datetime import datetime
from typing import Dict, List, Tuple

from . import conductivity, ph
from .drivers.i2c_bus import DEFAULT_BUS_NUMBER

PROBE_TYPES = ["ph", "ec"]

DEFAULT_ADDRESSES = {"ph": ph.DEFAULT_ADDRESS, "ec": conductivity.DEFAULT_ADDRESS}

# Commands only one probe type understands
_PROBE_TYPE_COMMANDS = {"slope": "ph", "outputs": "ec", "k": "ec"}

ProbeConfiguration = namedtuple(
    "ProbeConfiguration",
    [
        "probe_type",
        "bus_number",
        "address",
        "default_measurement",
        "verbose",
        "command",
        "command_args",
    ],
)


def _address(value: str) -> int:
    """ I2C addresses are often written in hex: accept "99", "0x63" or "0o143" """
    try:
        address = int(value, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid address: {value!r}")
    if not 0x03 <= address <= 0x77:
        raise argparse.ArgumentTypeError(f"address {value} is outside 0x03-0x77")
    return address


def _on_off(value: str) -> bool:
    if value not in ("on", "off"):
        raise argparse.ArgumentTypeError(f"expected 'on' or 'off', got {value!r}")
    return value == "on"


def _output_parameter_change(value: str) -> Tuple[conductivity.OutputParameter, bool]:
    """ "EC=on" enables EC, "SG=off" disables specific gravity """
    token, _, state = value.partition("=")
    try:
        output_parameter = conductivity.OutputParameter.from_token(token)
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown output parameter {token!r}")
    return output_parameter, _on_off(state)


def _add_command_parsers(arg_parser: argparse.ArgumentParser) -> None:
    commands = arg_parser.add_subparsers(dest="command", metavar="command")
    commands.required = True

    commands.add_parser("info", help="device information")
    commands.add_parser("status", help="device status")
    commands.add_parser("read", help="take a reading")
    commands.add_parser(
        "init", help="put the probe into its expected state (EC: enable all outputs)"
    )

    temp = commands.add_parser("temp", help="get/set temperature compensation")
    temp.add_argument("value", nargs="?", type=float, help="temperature in C to set")

    led = commands.add_parser("led", help="get/set the indicator LED")
    led.add_argument("state", nargs="?", type=_on_off, help="on or off")

    commands.add_parser("cal-count", help="number of stored calibration points")

    cal_clear = commands.add_parser("cal-clear", help="clear all calibration data")
    cal_clear.add_argument(
        "--yes",
        action="store_true",
        default=False,
        help="confirm that all existing calibration should be cleared",
    )

    cal = commands.add_parser(
        "cal",
        help="calibrate one point. pH: mid, low, high. EC: dry, one, low, high",
    )
    cal.add_argument("point")
    cal.add_argument(
        "value",
        nargs="?",
        type=float,
        help="pH of the buffer, or uS/cm of the solution (not used for EC dry)",
    )

    commands.add_parser("slope", help="pH probe calibration slope")

    outputs = commands.add_parser("outputs", help="get/set EC output parameters")
    outputs.add_argument(
        "changes",
        nargs="*",
        type=_output_parameter_change,
        help="TOKEN=on to enable, TOKEN=off to disable. Tokens: EC, TDS, S, SG",
    )

    k = commands.add_parser("k", help="get/set EC probe constant (K value)")
    k.add_argument("value", nargs="?", type=float, help="K value between 0.1 and 10")

    log = commands.add_parser("log", help="log readings to a csv file")
    log.add_argument(
        "--interval",
        default=60,
        type=float,
        help="time in seconds to wait between readings. Default: 60",
    )
    log.add_argument(
        "--count",
        type=int,
        help="number of readings to take. Default: keep going until interrupted",
    )
    log.add_argument(
        "--output",
        dest="output_csv_filepath",
        help="csv file to append to. Default: a new file named after the start time",
    )


def _parse_args(args: List[str]) -> Dict:
    arg_parser = argparse.ArgumentParser(
        description="Talk to an Atlas Scientific EZO pH or conductivity probe on an I2C bus",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    arg_parser.add_argument(
        "--probe",
        dest="probe_type",
        choices=PROBE_TYPES,
        default="ph",
        help="probe type. Default: ph",
    )

    arg_parser.add_argument(
        "--bus",
        dest="bus_number",
        type=int,
        default=DEFAULT_BUS_NUMBER,
        help=f"I2C bus number. Default: {DEFAULT_BUS_NUMBER}",
    )

    arg_parser.add_argument(
        "--address",
        type=_address,
        help=(
            "override the probe's I2C address. "
            f"Default: {DEFAULT_ADDRESSES['ph']} (ph), {DEFAULT_ADDRESSES['ec']} (ec)"
        ),
    )

    arg_parser.add_argument(
        "--default-measurement",
        choices=[p.token for p in conductivity.OutputParameter],
        default=conductivity.OutputParameter.ec.token,
        help="EC measurement reported as the probe's value. Default: EC",
    )

    arg_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="log every command and reply",
    )

    _add_command_parsers(arg_parser)

    probe_arg_namespace = arg_parser.parse_args(args)

    required_probe_type = _PROBE_TYPE_COMMANDS.get(probe_arg_namespace.command)
    if required_probe_type and required_probe_type != probe_arg_namespace.probe_type:
        arg_parser.error(
            f"{probe_arg_namespace.command} is only available with --probe {required_probe_type}"
        )

    if probe_arg_namespace.command == "cal-clear" and not probe_arg_namespace.yes:
        arg_parser.error("cal-clear deletes all calibration data; pass --yes to confirm")

    return vars(probe_arg_namespace)


def iso_datetime_for_filename(datetime_):
    """ ISO-ish timestamp without ":" so it can go in a filename
        datetime(2018, 1, 1, 12, 1, 1) --> '2018-01-01--12-01-01'
    """
    return datetime_.strftime("%Y-%m-%d--%H-%M-%S")


def _get_output_csv_filename(probe_type, start_date):
    return f"{iso_datetime_for_filename(start_date)}_{probe_type}.csv"


_GLOBAL_ARGS = ["probe_type", "bus_number", "address", "default_measurement", "verbose"]

# Checked by _parse_args; the command itself doesn't take them
_CONFIRMATION_ARGS = ["yes"]


def get_probe_configuration(
    cli_args: List[str], start_date: datetime
) -> ProbeConfiguration:
    args = _parse_args(cli_args)

    probe_type = args["probe_type"]
    command_args = {
        key: value
        for key, value in args.items()
        if key not in _GLOBAL_ARGS + _CONFIRMATION_ARGS + ["command"]
    }

    if args["command"] == "log" and command_args["output_csv_filepath"] is None:
        command_args["output_csv_filepath"] = _get_output_csv_filename(
            probe_type, start_date
        )

    return ProbeConfiguration(
        probe_type=probe_type,
        bus_number=args["bus_number"],
        address=(
            args["address"]
            if args["address"] is not None
            else DEFAULT_ADDRESSES[probe_type]
        ),
        default_measurement=conductivity.OutputParameter.from_token(
            args["default_measurement"]
        ),
        verbose=args["verbose"],
        command=args["command"],
        command_args=command_args,
    )
