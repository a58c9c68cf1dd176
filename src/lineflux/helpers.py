"""
Helper Utilities.

Provides the escaping rules of the line protocol. Each element of a point
(measurement, tag keys and values, field keys, string field values) has its
own set of characters that must be backslash-escaped so the server parser
does not split the line at the wrong place.
"""

# Order matters: the backslash must be escaped before the characters
# whose escape sequences introduce new backslashes.
_STRING_FIELD_ESCAPES = (("\\", "\\\\"), ('"', '\\"'))
_MEASUREMENT_ESCAPES = (("\\", "\\\\"), (",", "\\,"), (" ", "\\ "), ("\n", "\\n"))
_IDENTIFIER_ESCAPES = _MEASUREMENT_ESCAPES + (("=", "\\="),)


def _escape(text: str, rules) -> str:
    for char, replacement in rules:
        text = text.replace(char, replacement)
    return text


def escape_measurement(name: str) -> str:
    """Escapes commas, spaces and newlines in a measurement name."""
    return _escape(name, _MEASUREMENT_ESCAPES)


def escape_identifier(text: str) -> str:
    """
    Escapes a tag key, a tag value or a field key.

    Commas, equals signs, spaces and newlines are reserved in these positions.
    """
    return _escape(text, _IDENTIFIER_ESCAPES)


def quote_string_field(text: str) -> str:
    """Returns a string field value wrapped in double quotes, with `\\` and `"` escaped."""
    return f'"{_escape(text, _STRING_FIELD_ESCAPES)}"'
