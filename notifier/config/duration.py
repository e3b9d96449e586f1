"""Duration strings for TTL and tolerance settings.

Accepts compact forms ("30s", "15m", "1h30m", "2d") and ISO-8601
durations limited to days, hours, minutes and seconds ("PT15M", "P1D").
"""

import re


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed or is out of range."""

    pass


_UNITS = (("d", 86400), ("h", 3600), ("m", 60), ("s", 1))
_UNIT_SECONDS = dict(_UNITS)

_COMPACT = re.compile(r"(\d+)([smhd])")
_ISO8601 = re.compile(r"^P(?:(?P<d>\d+)D)?(?:T(?:(?P<h>\d+)H)?(?:(?P<m>\d+)M)?(?:(?P<s>\d+)S)?)?$")


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to a positive number of seconds.

    Raises:
        DurationParseError: If the string is malformed or amounts to zero

    Examples:
        >>> parse_duration("1h30m")
        5400
        >>> parse_duration("PT15M")
        900
    """
    if not isinstance(duration_str, str):
        raise DurationParseError(f"Duration must be a string, got {type(duration_str).__name__}")

    text = re.sub(r"\s+", "", duration_str).lower()
    if not text:
        raise DurationParseError("Duration string cannot be empty")

    if text.startswith("p"):
        match = _ISO8601.match(text.upper())
        if not match:
            raise DurationParseError(
                f"Invalid ISO-8601 duration: '{duration_str}'. Expected e.g. 'P1D', 'PT1H30M', 'PT30S'"
            )
        total = sum(int(count) * _UNIT_SECONDS[unit] for unit, count in match.groupdict().items() if count)
    else:
        parts = _COMPACT.findall(text)
        if not parts or "".join(number + unit for number, unit in parts) != text:
            raise DurationParseError(
                f"Invalid duration: '{duration_str}'. Use digits with s, m, h or d (e.g. '15m', '1h30m')"
            )
        total = sum(int(number) * _UNIT_SECONDS[unit] for number, unit in parts)

    if total == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")
    return total


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int,
    max_seconds: int,
    label: str = "Duration",
) -> None:
    """Raise DurationParseError unless min_seconds <= duration_seconds <= max_seconds."""
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {seconds_to_human_readable(duration_seconds)}. "
            f"Minimum is {seconds_to_human_readable(min_seconds)}."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {seconds_to_human_readable(duration_seconds)}. "
            f"Maximum is {seconds_to_human_readable(max_seconds)}."
        )


def seconds_to_human_readable(seconds: int) -> str:
    """Largest whole unit, e.g. "15 minutes" or "1 day"."""
    names = {"d": "day", "h": "hour", "m": "minute", "s": "second"}
    for unit, size in _UNITS:
        if seconds >= size or unit == "s":
            count = seconds // size
            return f"{count} {names[unit]}{'s' if count != 1 else ''}"
