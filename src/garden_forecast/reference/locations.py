"""Locations refreshed by the scheduled forecast job."""

from __future__ import annotations

from dataclasses import dataclass

from garden_forecast.schemas import Coordinates


@dataclass(frozen=True)
class Location:
    """A named location with a store key (usually a ZIP code)."""

    key: str
    name: str
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


DURHAM = Location(key="27707", name="Durham, NC", latitude=35.9940, longitude=-78.8986)

REFRESH_LOCATIONS: tuple[Location, ...] = (DURHAM,)


def find_location(key: str) -> Location | None:
    for location in REFRESH_LOCATIONS:
        if location.key == key:
            return location
    return None
