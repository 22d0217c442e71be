"""National Weather Service API constants.

API docs: https://www.weather.gov/documentation/services-web-api

No key is required, but NWS asks every client to identify itself with a
User-Agent that includes contact information.
"""

NWS_API = "https://api.weather.gov"
NWS_POINTS = NWS_API + "/points/{lat:.4f},{lon:.4f}"

HEADERS = {
    "User-Agent": "garden-forecast/0.1 (garden weather forecasting)",
    "Accept": "application/geo+json",
}

# The 7-day forecast is served as 14 alternating day/night periods
MAX_DAYS = 7

# Missing half of a day/night pair is estimated from the other half
DAY_NIGHT_SPREAD_F = 18.0

DEFAULT_HUMIDITY = 50.0

# (keywords, amount when probability > 50 %, amount otherwise), first match wins
PRECIP_ESTIMATES: list[tuple[tuple[str, ...], float, float]] = [
    (("heavy rain", "thunderstorm"), 0.5, 0.25),
    (("rain", "shower"), 0.25, 0.1),
    (("drizzle",), 0.1, 0.05),
]
