"""OpenWeatherMap current-conditions client.

Maps the API's metric payload onto a WeatherObservation (knots, estimated
ceiling, precipitation/thunderstorm/icing flags). Responses are cached per
location in an injected TTLCache.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Optional

import requests
from pydantic import ValidationError

from flightwx.analysis.icing import has_icing_conditions
from flightwx.exceptions import WeatherFetchError
from flightwx.fetch.cache import TTLCache
from flightwx.models import WeatherObservation

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
MS_TO_KNOTS = 1.94384


def estimate_ceiling(cloud_cover_pct: float) -> Optional[int]:
    """Rough cloud base from total cover; the API reports no cloud base."""
    if cloud_cover_pct < 10:
        return None  # clear, effectively unlimited
    if cloud_cover_pct < 50:
        return 3500  # scattered
    if cloud_cover_pct < 90:
        return 2000  # broken
    return 1000  # overcast


def categorize_precipitation(weather_main: str, temperature_c: float) -> tuple[str, bool, bool]:
    """Return ``(precipitation_type, has_precipitation, has_thunderstorm)``."""
    main = weather_main.lower()
    thunderstorm = "thunderstorm" in main

    if main in ("clear", "clouds"):
        return "none", False, thunderstorm
    if thunderstorm:
        return "rain", True, thunderstorm
    if "snow" in main:
        return "snow", True, thunderstorm
    if "rain" in main or "drizzle" in main:
        # Liquid precipitation below freezing arrives as freezing rain
        return ("ice" if temperature_c < 0 else "rain"), True, thunderstorm
    return "none", False, thunderstorm


def parse_observation(data: dict) -> WeatherObservation:
    """Convert an OpenWeatherMap response into a WeatherObservation.

    Raises:
        WeatherFetchError: Required fields missing or out of range.
    """
    try:
        main = data["main"]
        wind = data["wind"]
        temperature = float(main["temp"])
        humidity = float(main["humidity"])
        weather_main = (data.get("weather") or [{}])[0].get("main", "clear")
        precip_type, has_precip, has_ts = categorize_precipitation(weather_main, temperature)
        gust = wind.get("gust")

        return WeatherObservation(
            temperature_c=temperature,
            humidity_pct=humidity,
            visibility_m=float(data["visibility"]),
            ceiling_ft=estimate_ceiling(float(data.get("clouds", {}).get("all", 0))),
            wind_speed_kt=round(float(wind["speed"]) * MS_TO_KNOTS),
            wind_direction_deg=float(wind.get("deg", 0)),
            wind_gust_kt=round(float(gust) * MS_TO_KNOTS) if gust else None,
            precipitation=has_precip,
            precipitation_type=precip_type,
            thunderstorm=has_ts,
            icing=has_icing_conditions(temperature, humidity, has_precip),
            observed_at=datetime.fromtimestamp(int(data["dt"]), tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError) as exc:
        # ValidationError is a ValueError subclass
        detail = exc.errors() if isinstance(exc, ValidationError) else str(exc)
        raise WeatherFetchError(
            f"Malformed weather payload: {exc}", details={"error": detail}
        ) from exc


class OpenWeatherClient:
    """Fetches current conditions, caching per rounded coordinate."""

    def __init__(
        self,
        api_key: str,
        cache: TTLCache[WeatherObservation] | None = None,
        timeout: float = 10,
        base_url: str = OPENWEATHER_URL,
    ):
        if not api_key:
            raise ValueError("OpenWeatherMap API key is required")
        self.api_key = api_key
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=600)
        self.timeout = timeout
        self.base_url = base_url
        self.session = requests.Session()

    @classmethod
    def from_env(
        cls, cache: TTLCache[WeatherObservation] | None = None, timeout: float = 10
    ) -> OpenWeatherClient:
        """Build from OPENWEATHERMAP_API_KEY. Raises ValueError if unset."""
        api_key = os.environ.get("OPENWEATHERMAP_API_KEY", "")
        if not api_key:
            raise ValueError("OPENWEATHERMAP_API_KEY is not configured")
        return cls(api_key, cache=cache, timeout=timeout)

    @staticmethod
    def cache_key(lat: float, lon: float) -> str:
        return f"{lat:.4f},{lon:.4f}"

    def fetch(self, lat: float, lon: float) -> WeatherObservation:
        """Current observation at a location.

        Raises:
            WeatherFetchError: Network/HTTP failure or malformed payload.
        """
        key = self.cache_key(lat, lon)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Weather cache hit for %s", key)
            return cached

        logger.info("Fetching weather for %s", key)
        params = {"lat": lat, "lon": lon, "appid": self.api_key, "units": "metric"}
        try:
            resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise WeatherFetchError(
                f"OpenWeather request failed: {exc}", details={"location": key}
            ) from exc

        observation = parse_observation(data)
        self.cache.set(key, observation)
        return observation
