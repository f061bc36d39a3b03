"""
Pure UI formatters for display strings.

Contains zero business logic, only formatting for:
- Progress bars
- Byte sizes and transfer speeds
- Durations and uptimes

All functions are pure (no side effects, no I/O).

Usage:
    >>> from src.ui.formatters import StatusFormatters
    >>> StatusFormatters.progress_bar(50)
    '█████░░░░░'
"""

from typing import Optional

from src.ui.themes import UIConstants

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


class StatusFormatters:
    """Pure formatters for status displays."""

    @staticmethod
    def progress_bar(percent: Optional[float], width: int = UIConstants.PROGRESS_BAR_LENGTH) -> str:
        """
        Render a percentage as a block bar.

        Example:
            >>> StatusFormatters.progress_bar(75, 20)
            '███████████████░░░░░'
        """
        if percent is None:
            return UIConstants.PROGRESS_EMPTY * width
        filled = int(round(max(0.0, min(100.0, float(percent))) / 100 * width))
        return UIConstants.PROGRESS_FILLED * filled + UIConstants.PROGRESS_EMPTY * (width - filled)

    @staticmethod
    def percent(value: Optional[float]) -> str:
        return "N/A" if value is None else f"{value:.1f}%"

    @staticmethod
    def format_bytes(size: Optional[float]) -> str:
        """
        Example:
            >>> StatusFormatters.format_bytes(1536)
            '1.5 KB'
        """
        if not size or size <= 0:
            return "0 B"
        value, unit = float(size), 0
        while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
            value /= 1024
            unit += 1
        return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"

    @staticmethod
    def format_speed(bytes_per_second: Optional[float]) -> str:
        return f"{StatusFormatters.format_bytes(bytes_per_second)}/s"

    @staticmethod
    def format_duration(seconds: Optional[float]) -> str:
        """
        Short ETA-style duration.

        Example:
            >>> StatusFormatters.format_duration(3725)
            '1h 2m'
        """
        if not seconds or seconds <= 0:
            return "Unknown"
        seconds = int(seconds)
        hours, remainder = divmod(seconds, 3600)
        minutes, secs = divmod(remainder, 60)
        if hours:
            return f"{hours}h {minutes}m"
        if minutes:
            return f"{minutes}m {secs}s"
        return f"{secs}s"

    @staticmethod
    def format_uptime(seconds: Optional[float]) -> str:
        """
        Example:
            >>> StatusFormatters.format_uptime(90061)
            '1d 1h 1m'
        """
        if not seconds or seconds <= 0:
            return "N/A"
        seconds = int(seconds)
        days, remainder = divmod(seconds, 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes = remainder // 60
        if days:
            return f"{days}d {hours}h {minutes}m"
        if hours:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"
