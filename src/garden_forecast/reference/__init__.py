"""Static reference data.

Reference data that doesn't change with API calls: climatological normals
and the fixed set of refreshed locations.

Adding a new module:
1. Create ``reference/{name}.py`` with constants/dataclasses
2. Re-export from this ``__init__.py``
"""

from garden_forecast.reference.climate import DURHAM_NORMALS as DURHAM_NORMALS
from garden_forecast.reference.climate import MonthlyNormal as MonthlyNormal
from garden_forecast.reference.climate import normal_for_month as normal_for_month
from garden_forecast.reference.locations import DURHAM as DURHAM
from garden_forecast.reference.locations import REFRESH_LOCATIONS as REFRESH_LOCATIONS
from garden_forecast.reference.locations import Location as Location
from garden_forecast.reference.locations import find_location as find_location
