from collections import namedtuple
from typing import Callable, Dict, Tuple

from atlas_scientific.exceptions import ParseError

""" Decoding of the fixed-grammar ASCII replies sent by Atlas Scientific EZO probes

Query replies echo the command they answer, prefixed with "?", followed by comma-separated
values, e.g. "?STATUS,P,5.038" or "?SLOPE,99.7,100.3". Each command declares a ReplyPattern:
the expected prefix token and one (name, field parser) pair per value. A reply either matches
entirely or raises ParseError; there is no partial result.
"""

ReplyField = namedtuple("ReplyField", ["name", "parser"])

# `fields` are matched positionally after the prefix. If `last_field_takes_rest` is set, the
# final field receives the remainder of the payload, commas included (used for lists).
ReplyPattern = namedtuple(
    "ReplyPattern", ["prefix", "fields", "last_field_takes_rest"], defaults=[False]
)


def _is_decimal(value: str) -> bool:
    unsigned = value[1:] if value.startswith("-") else value
    return unsigned.replace(".", "", 1).isdigit()


def decimal(value: str) -> float:
    """ A plain decimal number such as "5.038", "19.5" or "1413" """
    if not _is_decimal(value):
        raise ValueError(f"{value!r} is not a decimal number")
    return float(value)


def digit(value: str) -> int:
    if not (len(value) == 1 and value.isdigit()):
        raise ValueError(f"{value!r} is not a single digit")
    return int(value)


def non_digit(value: str) -> str:
    if len(value) != 1 or value.isdigit():
        raise ValueError(f"{value!r} is not a single non-digit character")
    return value


def word(value: str) -> str:
    if not value.replace("_", "").isalnum():
        raise ValueError(f"{value!r} is not a word")
    return value


def flag(value: str) -> bool:
    if value not in ("0", "1"):
        raise ValueError(f"{value!r} is not 0 or 1")
    return value == "1"


def text(value: str) -> str:
    if not value:
        raise ValueError("empty value")
    return value


def _split_values(pattern: ReplyPattern, payload: str) -> Tuple[str, ...]:
    tokens = payload.split(",")

    if tokens[0] != pattern.prefix:
        raise ParseError(
            f"Reply {payload!r} does not start with expected prefix {pattern.prefix!r}"
        )

    values = tokens[1:]
    field_count = len(pattern.fields)

    if pattern.last_field_takes_rest and len(values) >= field_count > 0:
        values = values[: field_count - 1] + [",".join(values[field_count - 1 :])]

    if len(values) != field_count:
        raise ParseError(
            f"Reply {payload!r} has {len(values)} values, expected {field_count}"
        )

    return tuple(values)


def _parse_field(field: ReplyField, value: str, payload: str):
    parser: Callable = field.parser
    try:
        return parser(value)
    except ValueError as e:
        raise ParseError(
            f"Field {field.name!r} of reply {payload!r} could not be parsed: {e}"
        ) from e


def parse_reply(pattern: ReplyPattern, payload: str) -> Dict:
    """ Match a reply payload against a pattern and extract its named fields

    Args:
        pattern: ReplyPattern declared by the command that produced this reply
        payload: reply payload with the status byte and NUL padding already stripped

    Returns:
        dict of field name to parsed value, with every field of the pattern present

    Raises:
        ParseError if the payload does not match the pattern or a field can't be parsed
    """
    values = _split_values(pattern, payload.strip())

    return {
        field.name: _parse_field(field, value, payload)
        for field, value in zip(pattern.fields, values)
    }
