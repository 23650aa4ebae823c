import pytest

from conftest import FakeResponse
from bromnav.errors import ProviderUnavailable
from bromnav.models import Coord
from bromnav.nav_config import NavConfig
from bromnav.providers.nominatim import NominatimGeocoder


@pytest.fixture
def geocoder(fake_session):
    return NominatimGeocoder(NavConfig(nominatim_base_url="https://nominatim.test"), fake_session)


def test_geocode_is_restricted_to_belgium(geocoder, fake_session):
    fake_session.add("/search", FakeResponse([{"lat": "51.0543", "lon": "3.7174"}]))
    assert geocoder.geocode("Korenmarkt Gent") == Coord(51.0543, 3.7174)

    url, params = fake_session.calls[0]
    assert url == "https://nominatim.test/search"
    assert params["countrycodes"] == "be"
    assert params["format"] == "json"
    assert params["limit"] == 1


def test_session_identifies_itself(geocoder, fake_session):
    assert fake_session.headers["User-Agent"] == "bromnav/0.1"


def test_geocode_without_results(geocoder, fake_session):
    fake_session.add("/search", FakeResponse([]))
    assert geocoder.geocode("nergens") is None


def test_unexpected_payload(geocoder, fake_session):
    fake_session.add("/search", FakeResponse({"error": "Unable to geocode"}))
    with pytest.raises(ProviderUnavailable):
        geocoder.geocode("Gent")


def test_suggest(geocoder, fake_session):
    fake_session.add("/search", FakeResponse([
        {"place_id": 42, "display_name": "Korenmarkt, Gent, Vlaanderen, België",
         "lat": "51.0543", "lon": "3.7174"},
        {"place_id": 43},
    ]))
    suggestions = geocoder.suggest("Koren")

    assert len(suggestions) == 1
    assert suggestions[0].suggestion_id == "42"
    assert suggestions[0].coord == Coord(51.0543, 3.7174)
    assert fake_session.calls[0][1]["addressdetails"] == 1
