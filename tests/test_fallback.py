from routerunner.models.domain import Accuracy, Address
from routerunner.services.geocoding.fallback import (
    FALLBACK_CONFIDENCE,
    NATIONAL_CENTRE,
    POSTAL_REGIONS,
    fallback_location,
    lookup_region,
    postal_code_fallback,
)
from routerunner.services.geospatial import in_region


def test_1991_maps_to_velserbroek_band_on_land():
    coordinate, region = lookup_region("1991 AB")

    assert (coordinate.longitude, coordinate.latitude) == (4.6180, 52.4584)
    assert "Velserbroek" in region
    assert in_region(coordinate)


def test_fallback_is_deterministic():
    assert postal_code_fallback("3511 AB") == postal_code_fallback("3511 AB")
    assert postal_code_fallback("3511AB") == postal_code_fallback(" 3599 ZZ")


def test_unparseable_codes_use_national_centre():
    assert postal_code_fallback("") == NATIONAL_CENTRE
    assert postal_code_fallback("AB 1234") == NATIONAL_CENTRE
    assert postal_code_fallback("0999 AA") == NATIONAL_CENTRE


def test_every_region_centroid_is_inside_the_service_region():
    for first, last, lon, lat, _ in POSTAL_REGIONS:
        assert first <= last
        assert in_region(postal_code_fallback(f"{first} AA"))


def test_fallback_location_is_flagged_approximate():
    location = fallback_location(Address("Dorpsstraat", "1", "9711 AB", "Groningen"))

    assert location.accuracy is Accuracy.APPROXIMATE
    assert location.confidence == FALLBACK_CONFIDENCE <= 0.3
    assert location.region == "Groningen Noord"
