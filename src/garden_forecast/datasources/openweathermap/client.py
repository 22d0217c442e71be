"""OpenWeatherMap API constants.

API docs:
  - 5 day / 3 hour forecast: https://openweathermap.org/forecast5
  - One Call 3.0 (daily, up to 8 days): https://openweathermap.org/api/one-call-3
"""

OWM_FORECAST_API = "https://api.openweathermap.org/data/2.5/forecast"
OWM_ONECALL_API = "https://api.openweathermap.org/data/3.0/onecall"

# The 3-hourly endpoint covers 5 days; longer horizons use One Call
SHORT_RANGE_MAX_DAYS = 5
MAX_DAYS = 8

UNITS = "imperial"  # temperatures in F, wind in mph; precipitation is always mm

MM_PER_INCH = 25.4
