import re

_ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def format_duration(duration: str) -> str:
    """Renders an ISO-8601 video duration (``PT1H2M3S``) as ``01:02:03``."""
    match = _ISO_DURATION.search(duration or "")
    hours, minutes, seconds = match.groups() if match else (None, None, None)

    parts = [
        hours.zfill(2) if hours else "",
        (minutes or "").zfill(2),
        (seconds or "").zfill(2),
    ]
    return ":".join(part for part in parts if part)


_COMPACT_SUFFIXES = [(10**12, "T"), (10**9, "B"), (10**6, "M"), (10**3, "K")]


def format_compact_number(num) -> str:
    """Compact notation with at most one fraction digit, e.g. 1234567 -> 1.2M."""
    num = float(num)
    sign = "-" if num < 0 else ""
    num = abs(num)
    for index, (threshold, suffix) in enumerate(_COMPACT_SUFFIXES):
        if num >= threshold:
            value = round(num / threshold, 1)
            # 999_999 rounds up to 1000K; promote to the next unit
            if value >= 1000 and index > 0:
                threshold, suffix = _COMPACT_SUFFIXES[index - 1]
                value = round(num / threshold, 1)
            return f"{sign}{value:g}{suffix}"
    return f"{sign}{round(num, 1):g}"
