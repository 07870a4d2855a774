import pandas as pd
import pytest

from . import data_logging as module
from .conductivity import ConductivityProbe
from .ph import PhProbe


@pytest.fixture
def ph_probe(fake_transport):
    fake_transport.responder = {"I": "?I,pH,1.98", "R": "7.00"}.get
    return PhProbe(fake_transport, 0x63)


@pytest.fixture
def ec_probe(fake_transport):
    fake_transport.responder = {
        "I": "?I,EC,2.10",
        "O,?": "?O,EC,TDS",
        "R": "1413,707",
    }.get
    return ConductivityProbe(fake_transport, 0x64)


class TestGetSensorData:
    def test_ph_probe_reports_value_under_device_type(self, ph_probe):
        expected = pd.Series(
            {
                "device type": "pH",
                "firmware version": 1.98,
                "address": 0x63,
                "pH": 7.0,
            }
        )

        pd.testing.assert_series_equal(module.get_sensor_data(ph_probe), expected)

    def test_conductivity_probe_reports_every_enabled_output(self, ec_probe):
        sensor_data = module.get_sensor_data(ec_probe)

        assert sensor_data["EC"] == 1413.0
        assert sensor_data["TDS"] == 707.0
        assert "S" not in sensor_data


class TestCollectDataToCsv:
    def test_writes_headers_once_then_appends_rows(self, ph_probe, tmp_path):
        csv_filepath = tmp_path / "readings.csv"

        module.collect_data_to_csv(ph_probe, csv_filepath)
        module.collect_data_to_csv(ph_probe, csv_filepath)

        output_csv = pd.read_csv(csv_filepath)
        assert list(output_csv.columns) == [
            "timestamp",
            "device type",
            "firmware version",
            "address",
            "pH",
        ]
        assert list(output_csv["pH"]) == [7.0, 7.0]

    def test_returns_row(self, ph_probe, tmp_path):
        row = module.collect_data_to_csv(ph_probe, tmp_path / "readings.csv")

        assert row["pH"] == 7.0
        assert "timestamp" in row
