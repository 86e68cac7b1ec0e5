"""
Domain exceptions for analytics app.

Exception Hierarchy:
    AnalyticsServiceError (base)
    ├── InvalidDateRangeError
    └── InvalidTimezoneOffsetError

Usage:
    from apps.analytics.exceptions import AnalyticsServiceError

    try:
        report = build_sales_report(snapshots, costs, window, filters)
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=400)
"""


class AnalyticsServiceError(Exception):
    """Base exception for all analytics errors. Views answer 400."""

    pass


class InvalidDateRangeError(AnalyticsServiceError):
    """
    Raised when a report window starts after it ends.

    Example:
        raise InvalidDateRangeError("Start date must be on or before end date")
    """

    pass


class InvalidTimezoneOffsetError(AnalyticsServiceError):
    """Raised when the timezone offset is outside UTC-12:00..UTC+14:00."""

    pass
