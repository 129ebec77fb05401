import pytest

import gpm8212.drivers.serial_port as module


class TestCreateConfiguration:
    def test_defaults_match_meter_factory_settings(self):
        configuration = module.create_configuration()

        assert configuration.port == "COM1"
        assert configuration.baud_rate == 9600
        assert configuration.byte_size == 8
        assert configuration.parity == "N"
        assert configuration.stop_bits == 1

    def test_overrides_fields(self):
        configuration = module.create_configuration(
            port="/dev/ttyUSB0", read_total_constant=500
        )

        assert configuration.port == "/dev/ttyUSB0"
        assert configuration.read_total_constant == 500
        assert configuration.baud_rate == 9600

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError):
            module.create_configuration(flow_control="xonxoff")

    @pytest.mark.parametrize(
        "overrides, expected_error_message_content",
        [
            ({"baud_rate": 0}, "Baud rate"),
            ({"baud_rate": -9600}, "Baud rate"),
            ({"port": None}, "Port"),
            ({"parity": None}, "Parity"),
            ({"stop_bits": None}, "Stop bits"),
            ({"read_interval": -1}, "read_interval"),
            ({"write_total_multiplier": None}, "write_total_multiplier"),
        ],
    )
    def test_invalid_configuration_raises(
        self, overrides, expected_error_message_content
    ):
        with pytest.raises(ValueError, match=expected_error_message_content):
            module.create_configuration(**overrides)

    def test_reports_multiple_errors(self):
        configuration = module.DEFAULT_CONFIGURATION._replace(baud_rate=0, port=None)

        assert len(module.get_configuration_validation_errors(configuration)) == 2


class TestGetSerialKwargs:
    def test_zero_timeouts_block_forever(self):
        serial_kwargs = module.get_serial_kwargs(module.DEFAULT_CONFIGURATION)

        assert serial_kwargs == {
            "port": "COM1",
            "baudrate": 9600,
            "bytesize": 8,
            "parity": "N",
            "stopbits": 1,
            "timeout": None,
            "inter_byte_timeout": None,
            "write_timeout": None,
        }

    def test_converts_millisecond_timeouts_to_seconds(self):
        configuration = module.DEFAULT_CONFIGURATION._replace(
            read_interval=50,
            read_total_constant=400,
            read_total_multiplier=100,
            write_total_constant=250,
            write_total_multiplier=0,
        )

        serial_kwargs = module.get_serial_kwargs(configuration)

        assert serial_kwargs["timeout"] == 0.5
        assert serial_kwargs["inter_byte_timeout"] == 0.05
        assert serial_kwargs["write_timeout"] == 0.25


class TestOpenSerialConnection:
    def test_opens_serial_with_translated_settings(self, mocker):
        mock_serial_class = mocker.patch.object(module.serial, "Serial")
        configuration = module.DEFAULT_CONFIGURATION._replace(
            port="/dev/ttyUSB0", baud_rate=19200, read_total_constant=1000
        )

        connection = module.open_serial_connection(configuration)

        assert connection is mock_serial_class.return_value
        mock_serial_class.assert_called_once_with(
            port="/dev/ttyUSB0",
            baudrate=19200,
            bytesize=8,
            parity="N",
            stopbits=1,
            timeout=1.0,
            inter_byte_timeout=None,
            write_timeout=None,
        )

    def test_validates_before_opening(self, mocker):
        mock_serial_class = mocker.patch.object(module.serial, "Serial")

        with pytest.raises(ValueError):
            module.open_serial_connection(
                module.DEFAULT_CONFIGURATION._replace(baud_rate=0)
            )

        mock_serial_class.assert_not_called()
