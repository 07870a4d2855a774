from unittest.mock import call

import pytest

import atlas_scientific.sensor as module
from atlas_scientific.exceptions import DeviceError, ParseError

ADDRESS = 0x63


@pytest.fixture
def sensor(fake_transport):
    return module.AtlasSensor(fake_transport, ADDRESS)


class TestQueries:
    @pytest.mark.parametrize(
        "method_name, expected_command, reply, expected",
        [
            ("get_raw_value", "R", "1413,707", "1413,707"),
            (
                "get_status",
                "STATUS",
                "?STATUS,P,5.038",
                module.Status(restart_code="P", vcc_voltage=5.038),
            ),
            (
                "get_device_info",
                "I",
                "?I,pH,1.98",
                module.DeviceInfo(type="pH", firmware_version=1.98),
            ),
            ("get_temperature_compensation", "T,?", "?T,19.5", 19.5),
            ("get_led_status", "L,?", "?L,1", True),
            ("get_led_status", "L,?", "?L,0", False),
            ("get_calibration_count", "CAL,?", "?CAL,2", 2),
        ],
    )
    def test_sends_command_and_parses_reply(
        self, sensor, fake_transport, method_name, expected_command, reply, expected
    ):
        fake_transport.queue_reply(reply)

        assert getattr(sensor, method_name)() == expected
        assert fake_transport.writes == [(ADDRESS, expected_command.encode("ascii"))]

    @pytest.mark.parametrize(
        "method_name, reply",
        [
            ("get_status", "?STATUS,P"),
            ("get_device_info", "?I,pH,one"),
            ("get_temperature_compensation", "?T,"),
            ("get_led_status", "?L,2"),
            ("get_calibration_count", "?CAL,x"),
        ],
    )
    def test_malformed_reply_raises_parse_error(
        self, sensor, fake_transport, method_name, reply
    ):
        fake_transport.queue_reply(reply)

        with pytest.raises(ParseError):
            getattr(sensor, method_name)()

    def test_raw_value_waits_a_second(self, sensor, fake_transport, mock_sleep):
        fake_transport.queue_reply("7.00")

        sensor.get_raw_value()

        mock_sleep.assert_called_once_with(1.0)

    def test_status_query_waits_300ms(self, sensor, fake_transport, mock_sleep):
        fake_transport.queue_reply("?STATUS,P,5.038")

        sensor.get_status()

        mock_sleep.assert_called_once_with(0.3)


class TestSettings:
    @pytest.mark.parametrize(
        "method_name, args, expected_command",
        [
            ("set_temperature_compensation", (19.5,), "T,19.500000"),
            ("set_led_status", (True,), "L,1"),
            ("set_led_status", (False,), "L,0"),
            ("clear_calibration", (), "CAL,clear"),
        ],
    )
    def test_sends_command_and_expects_empty_success(
        self, sensor, fake_transport, mock_sleep, method_name, args, expected_command
    ):
        fake_transport.queue_reply()

        getattr(sensor, method_name)(*args)

        assert fake_transport.commands == [expected_command]
        assert mock_sleep.call_args_list == [call(0.3)]

    def test_device_error_propagates(self, sensor, fake_transport):
        fake_transport.queue_reply(status=2)

        with pytest.raises(DeviceError):
            sensor.set_led_status(True)


class TestGetValue:
    def test_not_implemented_on_base(self, sensor, fake_transport):
        with pytest.raises(NotImplementedError):
            sensor.get_value()

        assert fake_transport.writes == []


def test_initialize_does_nothing_on_base(sensor, fake_transport):
    sensor.initialize()

    assert fake_transport.writes == []


def test_repr_shows_address(sensor):
    assert repr(sensor) == "AtlasSensor(address=0x63)"
