"""Weather Underground API client.

Provides one fluent method per API feature. Features are queued and sent
together in a single call once a query and a callback are supplied.

API Documentation: https://www.wunderground.com/weather/api/d/docs

Usage:
    from wundergrounded import WundergroundClient

    async with WundergroundClient(api_key="your_key").cache().limit(10, "minute") as wu:
        outcome = await wu.conditions().forecast().execute("CA/San_Francisco", on_weather)

    # or, from inside a running event loop
    wu.conditions().forecast("94107", on_weather)
    await wu.wait()
"""

import re
from datetime import date, datetime
from typing import Any

from wundergrounded.errors import InvalidParameter
from wundergrounded.pipeline.orchestrator import Callback, RequestOrchestrator


# Features that take no parameters, in alphabetical order
FEATURES: tuple[str, ...] = (
    "alerts",
    "almanac",
    "astronomy",
    "autocomplete",
    "conditions",
    "currenthurricane",
    "forecast",
    "forecast10day",
    "geolookup",
    "hourly",
    "hourly7day",
    "hourly10day",
    "rawtide",
    "satellite",
    "tide",
    "webcams",
    "yesterday",
)

# Features whose token carries a date suffix
DATED_FEATURES: tuple[str, ...] = ("history", "planner")

DateLike = date | datetime | str

_DATE_FORMATS = (
    (re.compile(r"[0-9]{8}"), "%Y%m%d"),
    (re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}"), "%Y-%m-%d"),
)
_MONTH_DAY = re.compile(r"[0-9]{4}")


def parse_date(value: Any, name: str = "date") -> date:
    """Parse a calendar date.

    Accepts ``date``/``datetime`` objects and ``YYYYMMDD`` or ``YYYY-MM-DD``
    strings.

    Raises:
        InvalidParameter: If the value is missing or not a real date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # strptime alone accepts unpadded fields ("2024111", "2024-1-5")
        for pattern, fmt in _DATE_FORMATS:
            if pattern.fullmatch(text):
                try:
                    return datetime.strptime(text, fmt).date()
                except ValueError:
                    break
    raise InvalidParameter(f"{name} must be a valid date (YYYYMMDD or YYYY-MM-DD), got {value!r}")


def parse_month_day(value: Any, name: str = "date") -> tuple[int, int]:
    """Parse a month/day pair for the planner.

    Accepts everything ``parse_date`` does, plus ``MMDD`` strings.
    February 29th is accepted.
    """
    if isinstance(value, str) and _MONTH_DAY.fullmatch(value.strip()):
        try:
            # Leap year, so 0229 is valid
            parsed = datetime.strptime("2000" + value.strip(), "%Y%m%d")
        except ValueError:
            raise InvalidParameter(f"{name} must be a valid MMDD date, got {value!r}")
        return parsed.month, parsed.day
    parsed_date = parse_date(value, name)
    return parsed_date.month, parsed_date.day


def history_token(day: DateLike) -> str:
    """``history_YYYYMMDD``"""
    return f"history_{parse_date(day):%Y%m%d}"


def planner_token(start: DateLike, end: DateLike) -> str:
    """``planner_MMDDMMDD``"""
    start_month, start_day = parse_month_day(start, "start")
    end_month, end_day = parse_month_day(end, "end")
    return f"planner_{start_month:02d}{start_day:02d}{end_month:02d}{end_day:02d}"


class WundergroundClient(RequestOrchestrator):
    """Fluent client for the Weather Underground API.

    Each feature method queues its feature and returns the client. When a
    feature method is given both ``query`` and ``callback`` it also sends
    the request, carrying every feature queued so far.

    Args:
        api_key: Weather Underground API key (default: WUNDERGROUND_API_KEY)
        **kwargs: Passed to RequestOrchestrator
    """

    def _feature(self, token: str, query: str | None, callback: Callback | None) -> "WundergroundClient":
        self.enqueue(token)
        if query and callback:
            self.request(query, callback)
        return self

    def _invalid(self, feature: str, error: InvalidParameter, callback: Callback | None) -> "WundergroundClient":
        if callable(callback):
            self._notify(callback, self._failure(error))
        else:
            self._trace(feature, f"Not queued: {error}")
        return self

    # -- features without parameters ---------------------------------------

    def alerts(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Active severe weather alerts."""
        return self._feature("alerts", query, callback)

    def almanac(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Historical average and record temperatures for today."""
        return self._feature("almanac", query, callback)

    def astronomy(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Moon phase, sunrise and sunset times."""
        return self._feature("astronomy", query, callback)

    def autocomplete(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        return self._feature("autocomplete", query, callback)

    def conditions(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Current observation for the location."""
        return self._feature("conditions", query, callback)

    def currenthurricane(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Active hurricanes and tropical storms."""
        return self._feature("currenthurricane", query, callback)

    def forecast(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Summary forecast for the next 3 days."""
        return self._feature("forecast", query, callback)

    def forecast10day(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Summary forecast for the next 10 days."""
        return self._feature("forecast10day", query, callback)

    def geolookup(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """City name, zip code and nearby stations for the location."""
        return self._feature("geolookup", query, callback)

    def hourly(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Hourly forecast for the next 36 hours."""
        return self._feature("hourly", query, callback)

    def hourly7day(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        return self._feature("hourly7day", query, callback)

    def hourly10day(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Hourly forecast for the next 10 days."""
        return self._feature("hourly10day", query, callback)

    def rawtide(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Raw tidal height readings."""
        return self._feature("rawtide", query, callback)

    def satellite(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Satellite image URLs."""
        return self._feature("satellite", query, callback)

    def tide(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Tidal information."""
        return self._feature("tide", query, callback)

    def webcams(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Nearby personal weather station webcams."""
        return self._feature("webcams", query, callback)

    def yesterday(self, query: str | None = None, callback: Callback | None = None) -> "WundergroundClient":
        """Observations and summary for yesterday."""
        return self._feature("yesterday", query, callback)

    # -- dated features ----------------------------------------------------

    def history(
        self,
        day: DateLike | None,
        query: str | None = None,
        callback: Callback | None = None,
    ) -> "WundergroundClient":
        """Observations and summary for a past date.

        Args:
            day: Date to fetch (``date`` or ``YYYYMMDD`` / ``YYYY-MM-DD``)
            query: Location; sends the request together with ``callback``
            callback: ``callback(error, data)``
        """
        try:
            token = history_token(day)
        except InvalidParameter as e:
            return self._invalid("history", e, callback)
        return self._feature(token, query, callback)

    def planner(
        self,
        start: DateLike | None,
        end: DateLike | None,
        query: str | None = None,
        callback: Callback | None = None,
    ) -> "WundergroundClient":
        """Historical weather summary for a date range (travel planner).

        Only month and day are sent; the provider averages over past years.

        Args:
            start: First day (``date``, ``MMDD``, ``YYYYMMDD`` or ``YYYY-MM-DD``)
            end: Last day, same formats
            query: Location; sends the request together with ``callback``
            callback: ``callback(error, data)``
        """
        try:
            token = planner_token(start, end)
        except InvalidParameter as e:
            return self._invalid("planner", e, callback)
        return self._feature(token, query, callback)
