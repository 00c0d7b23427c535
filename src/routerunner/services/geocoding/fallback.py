"""Deterministic area-level coordinates keyed by postal-code prefix.

Used when no provider result is acceptable. Each band of four-digit postal
codes maps to a fixed regional centroid on land; codes that cannot be parsed
land on the national centre. The table is looked up, never interpolated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ...models.domain import Accuracy, Address, Coordinate

FALLBACK_CONFIDENCE = 0.3

NATIONAL_CENTRE = Coordinate(longitude=5.2913, latitude=52.1326)
NATIONAL_CENTRE_NAME = "Nederland centrum"

# (first code, last code, longitude, latitude, region)
POSTAL_REGIONS: tuple[tuple[int, int, float, float, str], ...] = (
    (1000, 1099, 4.9041, 52.3676, "Amsterdam Centrum"),
    (1100, 1199, 4.8952, 52.3702, "Amsterdam Noord"),
    (1200, 1299, 4.8600, 52.3400, "Hilversum"),
    (1300, 1399, 5.2213, 52.1326, "Almere"),
    (1400, 1499, 5.1600, 52.2200, "Bussum"),
    (1500, 1599, 4.8180, 52.4380, "Zaandam"),
    (1600, 1699, 4.7700, 52.5000, "Wormer/Krommenie"),
    (1700, 1799, 4.8500, 52.6700, "Heerhugowaard"),
    (1800, 1899, 4.7500, 52.6300, "Alkmaar"),
    (1900, 1999, 4.6180, 52.4584, "Castricum/Velserbroek"),
    (2000, 2099, 4.3571, 52.1326, "Haarlem"),
    (2100, 2199, 4.3200, 52.1800, "Heemstede"),
    (2200, 2299, 4.5041, 52.1676, "Noordwijk"),
    (2300, 2399, 4.4777, 52.1601, "Leiden"),
    (2400, 2499, 4.6500, 52.1300, "Alphen aan den Rijn"),
    (2500, 2599, 4.3013, 52.0705, "Den Haag"),
    (2600, 2699, 4.3600, 52.0100, "Delft"),
    (2700, 2799, 4.4900, 52.0600, "Zoetermeer"),
    (2800, 2899, 4.7100, 52.0200, "Gouda"),
    (2900, 2999, 4.5400, 52.0400, "Capelle aan den IJssel"),
    (3000, 3199, 4.4777, 51.9225, "Rotterdam"),
    (3200, 3299, 4.3300, 51.8500, "Spijkenisse"),
    (3300, 3399, 4.6700, 51.8100, "Dordrecht"),
    (3400, 3499, 5.0400, 52.0200, "IJsselstein"),
    (3500, 3599, 5.1214, 52.0907, "Utrecht"),
    (3600, 3699, 5.1300, 52.1400, "Maarssen"),
    (3700, 3799, 5.2300, 52.0900, "Zeist"),
    (3800, 3899, 5.3878, 52.1561, "Amersfoort"),
    (3900, 3999, 5.2700, 51.9900, "Veenendaal"),
    (4000, 4099, 5.4300, 51.8900, "Tiel"),
    (4100, 4199, 5.1800, 51.8300, "Culemborg"),
    (4200, 4299, 4.9700, 51.8300, "Gorinchem"),
    (4300, 4399, 3.9200, 51.6500, "Zierikzee"),
    (4400, 4499, 3.9300, 51.5000, "Yerseke"),
    (4500, 4599, 3.6100, 51.3700, "Oostburg"),
    (4600, 4699, 4.2900, 51.4900, "Bergen op Zoom"),
    (4700, 4799, 4.4500, 51.5300, "Roosendaal"),
    (4800, 4899, 4.7760, 51.5719, "Breda"),
    (4900, 4999, 4.7000, 51.6700, "Oosterhout"),
    (5000, 5099, 5.0919, 51.5555, "Tilburg"),
    (5100, 5199, 5.0600, 51.4500, "Dongen"),
    (5200, 5299, 5.3037, 51.6878, "'s-Hertogenbosch"),
    (5300, 5399, 5.2400, 51.8100, "Zaltbommel"),
    (5400, 5499, 5.6200, 51.6600, "Uden"),
    (5500, 5599, 5.4000, 51.4200, "Veldhoven"),
    (5600, 5699, 5.4697, 51.4416, "Eindhoven"),
    (5700, 5799, 5.6600, 51.4800, "Helmond"),
    (5800, 5899, 5.9700, 51.5300, "Venray"),
    (5900, 5999, 6.1600, 51.3700, "Venlo"),
    (6000, 6099, 5.7100, 51.2500, "Weert"),
    (6100, 6199, 5.8000, 50.9500, "Echt"),
    (6200, 6299, 5.6881, 50.8429, "Maastricht"),
    (6300, 6399, 5.8300, 50.8700, "Valkenburg"),
    (6400, 6499, 5.9800, 50.8900, "Heerlen"),
    (6500, 6599, 5.8669, 51.8426, "Nijmegen"),
    (6600, 6699, 5.7300, 51.8000, "Wijchen"),
    (6700, 6799, 5.6681, 51.9697, "Wageningen"),
    (6800, 6899, 5.8987, 51.9851, "Arnhem"),
    (6900, 6999, 6.0700, 51.9100, "Zevenaar"),
    (7000, 7099, 6.2969, 51.9650, "Doetinchem"),
    (7100, 7199, 6.1400, 52.1000, "Winterswijk"),
    (7200, 7299, 6.2003, 52.1401, "Zutphen"),
    (7300, 7399, 5.9694, 52.2112, "Apeldoorn"),
    (7400, 7499, 6.1639, 52.2550, "Deventer"),
    (7500, 7599, 6.8939, 52.2215, "Enschede"),
    (7600, 7699, 6.6611, 52.3508, "Almelo"),
    (7700, 7799, 6.4500, 52.6000, "Dedemsvaart"),
    (7800, 7899, 6.9069, 52.7797, "Emmen"),
    (7900, 7999, 6.5900, 52.5200, "Hoogeveen"),
    (8000, 8199, 6.0919, 52.5125, "Zwolle"),
    (8200, 8299, 5.4714, 52.5181, "Lelystad"),
    (8300, 8399, 5.7500, 52.7100, "Emmeloord"),
    (8400, 8499, 6.0700, 52.9900, "Gorredijk"),
    (8500, 8599, 5.9661, 52.9667, "Joure"),
    (8600, 8699, 5.6581, 53.0311, "Sneek"),
    (8700, 8799, 5.5189, 53.0894, "Bolsward"),
    (8800, 8899, 5.5422, 53.1858, "Franeker"),
    (8900, 8999, 5.7950, 53.2012, "Leeuwarden"),
    (9000, 9099, 6.5665, 53.2194, "Groningen"),
    (9100, 9199, 6.5000, 53.1100, "Dokkum"),
    (9200, 9299, 6.0989, 52.9497, "Drachten"),
    (9300, 9399, 6.3667, 53.1333, "Roden"),
    (9400, 9499, 6.5611, 52.9956, "Assen"),
    (9500, 9599, 6.9500, 52.9900, "Stadskanaal"),
    (9600, 9699, 6.7500, 53.1600, "Hoogezand"),
    (9700, 9799, 6.5900, 53.2400, "Groningen Noord"),
    (9800, 9899, 6.3500, 53.4000, "Zuidhorn"),
    (9900, 9999, 6.8500, 53.3200, "Appingedam"),
)

_PREFIX_PATTERN = re.compile(r"^\s*(\d{4})")


@dataclass(frozen=True, slots=True)
class FallbackLocation:
    coordinate: Coordinate
    region: str
    confidence: float = FALLBACK_CONFIDENCE
    accuracy: Accuracy = Accuracy.APPROXIMATE


def _postal_prefix(postal_code: str) -> Optional[int]:
    match = _PREFIX_PATTERN.match(postal_code or "")
    return int(match.group(1)) if match else None


def lookup_region(postal_code: str) -> tuple[Coordinate, str]:
    prefix = _postal_prefix(postal_code)
    if prefix is not None:
        for first, last, lon, lat, region in POSTAL_REGIONS:
            if first <= prefix <= last:
                return Coordinate(longitude=lon, latitude=lat), region
    return NATIONAL_CENTRE, NATIONAL_CENTRE_NAME


def postal_code_fallback(postal_code: str) -> Coordinate:
    """Regional centroid for ``postal_code``; pure and deterministic."""
    coordinate, _ = lookup_region(postal_code)
    return coordinate


def fallback_location(address: Address) -> FallbackLocation:
    coordinate, region = lookup_region(address.postal_code)
    return FallbackLocation(coordinate=coordinate, region=region)
