"""
Helpers that turn byte counts and durations into short human-readable strings
for the harvest summary.
"""

_SIZE_UNITS = ("KB", "MB", "GB", "TB")


def format_size(bytes_size: float) -> str:
    """
    Formats a byte count (e.g. '512 B', '14.2 KB', '3.1 MB').

    Plain bytes are shown without decimals since most KBART files are small.
    """
    if bytes_size < 1024:
        return f"{max(0, int(bytes_size))} B"
    value = bytes_size / 1024
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {_SIZE_UNITS[unit]}"


def format_duration(seconds: float) -> str:
    """Formats a duration (e.g. '0.4s', '12s', '2m 5s', '1h 3m')."""
    if seconds < 10:
        return f"{max(0.0, seconds):.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
