"""WeatherAPI.com constants.

API docs: https://www.weatherapi.com/docs/
"""

WEATHERAPI_FORECAST = "https://api.weatherapi.com/v1/forecast.json"

# Free and paid plans both serve at least 10 days of daily aggregates
MAX_DAYS = 10
