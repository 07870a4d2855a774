from datetime import datetime

import pandas as pd

from .conductivity import ConductivityProbe
from .sensor import AtlasSensor


def get_sensor_data(probe: AtlasSensor) -> pd.Series:
    """ Take a reading, labelled with what the probe says it is.
    A conductivity probe reports every enabled output parameter, keyed by its token.
    Any other probe reports its single value under its device type, e.g. "pH".
    """
    device_info = probe.get_device_info()

    if isinstance(probe, ConductivityProbe):
        readings = {
            output_parameter.token: value
            for output_parameter, value in probe.get_all_values().items()
        }
    else:
        readings = {device_info.type: probe.get_value()}

    return pd.Series(
        {
            "device type": device_info.type,
            "firmware version": device_info.firmware_version,
            "address": probe.engine.address,
            **readings,
        }
    )


def _write_row_to_csv(csv_filepath: str, row: pd.Series) -> None:
    """
        Appends a row of data to a csv file. Adds a header line if it's a new file.

        Args:
            csv_filepath: path to the csv file to append to
            row: dict representing the row
    """
    row_df = pd.DataFrame([row])

    with open(csv_filepath, "a") as csv_file:
        is_file_empty = csv_file.tell() == 0
        row_df.to_csv(csv_file, index=False, header=is_file_empty, mode="a")


def collect_data_to_csv(probe: AtlasSensor, csv_filepath: str) -> pd.Series:
    """ Read the probe and append one timestamped row (plus headers with the first row)
        to a csv file.

        Returns the row
    """
    row = pd.Series({"timestamp": datetime.now(), **dict(get_sensor_data(probe))})

    _write_row_to_csv(csv_filepath, row)

    return row
