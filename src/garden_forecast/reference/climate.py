"""Climatological monthly normals used when no live forecast is available."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MonthlyNormal:
    """Average conditions for one calendar month."""

    temp_high: float  # F
    temp_low: float  # F
    precipitation: float  # inches per month
    humidity: float  # percent
    description: str

    @property
    def temp_avg(self) -> float:
        return (self.temp_high + self.temp_low) / 2

    @property
    def daily_precipitation(self) -> float:
        return self.precipitation / 30


# Durham, NC (USDA zone 7b). Index 0 = January.
DURHAM_NORMALS: tuple[MonthlyNormal, ...] = (
    MonthlyNormal(51, 31, 3.5, 65, "Cool and mild"),
    MonthlyNormal(55, 34, 3.2, 63, "Cool with occasional warmth"),
    MonthlyNormal(63, 41, 3.8, 62, "Mild and pleasant"),
    MonthlyNormal(72, 49, 3.1, 61, "Warm and comfortable"),
    MonthlyNormal(80, 58, 3.9, 65, "Warm and humid"),
    MonthlyNormal(87, 66, 4.2, 68, "Hot and humid"),
    MonthlyNormal(90, 70, 4.6, 71, "Hot and humid"),
    MonthlyNormal(88, 69, 4.2, 73, "Hot and humid"),
    MonthlyNormal(82, 62, 3.4, 70, "Warm and pleasant"),
    MonthlyNormal(73, 50, 3.1, 67, "Cool and comfortable"),
    MonthlyNormal(64, 40, 2.9, 64, "Cool and crisp"),
    MonthlyNormal(54, 32, 3.2, 65, "Cool and mild"),
)


def normal_for_month(month: int) -> MonthlyNormal:
    """Normals for a 1-based month number."""
    return DURHAM_NORMALS[month - 1]
