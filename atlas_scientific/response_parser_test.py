import pytest

import atlas_scientific.response_parser as module
from atlas_scientific.exceptions import ParseError

STATUS_PATTERN = module.ReplyPattern(
    "?STATUS",
    (
        module.ReplyField("restart_code", module.non_digit),
        module.ReplyField("vcc_voltage", module.decimal),
    ),
)

LIST_PATTERN = module.ReplyPattern(
    "?O", (module.ReplyField("tokens", module.text),), last_field_takes_rest=True
)


class TestFieldParsers:
    @pytest.mark.parametrize(
        "value, expected", [("5.038", 5.038), ("19", 19.0), ("-2.5", -2.5)]
    )
    def test_decimal(self, value, expected):
        assert module.decimal(value) == expected

    @pytest.mark.parametrize("value", ["", "nan", "inf", "1.2.3", "5V", "-"])
    def test_decimal_rejects(self, value):
        with pytest.raises(ValueError):
            module.decimal(value)

    @pytest.mark.parametrize(
        "parser, value",
        [
            (module.digit, "12"),
            (module.digit, "x"),
            (module.non_digit, "5"),
            (module.non_digit, "PS"),
            (module.word, "p H"),
            (module.flag, "2"),
            (module.text, ""),
        ],
    )
    def test_rejects_out_of_grammar_values(self, parser, value):
        with pytest.raises(ValueError):
            parser(value)

    def test_flag(self):
        assert module.flag("1") is True
        assert module.flag("0") is False


class TestParseReply:
    def test_extracts_typed_fields(self):
        assert module.parse_reply(STATUS_PATTERN, "?STATUS,P,5.038") == {
            "restart_code": "P",
            "vcc_voltage": 5.038,
        }

    @pytest.mark.parametrize(
        "payload",
        [
            "",
            "?STATUS",
            "?STATUS,P",
            "?STATUS,P,5.038,extra",
            "?I,P,5.038",
            "STATUS,P,5.038",
            "?STATUS,3,5.038",
            "?STATUS,P,five",
        ],
    )
    def test_all_or_nothing(self, payload):
        with pytest.raises(ParseError):
            module.parse_reply(STATUS_PATTERN, payload)

    def test_last_field_takes_rest(self):
        assert module.parse_reply(LIST_PATTERN, "?O,EC,TDS,S") == {"tokens": "EC,TDS,S"}

    def test_last_field_takes_rest_still_requires_a_value(self):
        with pytest.raises(ParseError):
            module.parse_reply(LIST_PATTERN, "?O")

    def test_ignores_surrounding_whitespace(self):
        assert module.parse_reply(STATUS_PATTERN, "?STATUS,P,5.038\r")[
            "vcc_voltage"
        ] == pytest.approx(5.038)
