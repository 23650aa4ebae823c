from typing import List, Optional

import pytest

from bromnav.errors import GeocodeNotFound, ProviderUnavailable
from bromnav.geocoder import Geocoder
from bromnav.models import Coord, Suggestion
from bromnav.providers import GeocodingProvider

KORENMARKT = Coord(51.0543, 3.7174)


class StubGeocoder(GeocodingProvider):
    def __init__(self, name: str, coord=None, suggestions=None) -> None:
        self.name = name
        self.coord = coord
        self.suggestions = suggestions if suggestions is not None else []
        self.queries: List[str] = []

    def geocode(self, query: str) -> Optional[Coord]:
        self.queries.append(query)
        if isinstance(self.coord, Exception):
            raise self.coord
        return self.coord

    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        self.queries.append(query)
        if isinstance(self.suggestions, Exception):
            raise self.suggestions
        return self.suggestions[:limit]


def test_primary_result_is_used():
    primary = StubGeocoder("primary", KORENMARKT)
    secondary = StubGeocoder("secondary", Coord(0, 0))
    assert Geocoder([primary, secondary]).geocode("Korenmarkt") == KORENMARKT
    assert secondary.queries == []


def test_falls_back_on_failure_and_empty_answer():
    failing = StubGeocoder("failing", ProviderUnavailable("failing", "HTTP 500"))
    empty = StubGeocoder("empty", None)
    last = StubGeocoder("last", KORENMARKT)
    assert Geocoder([failing, empty, last]).geocode("  Korenmarkt ") == KORENMARKT
    assert last.queries == ["Korenmarkt"]


def test_not_found():
    with pytest.raises(GeocodeNotFound):
        Geocoder([StubGeocoder("only", None)]).geocode("nergens")


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_query_never_reaches_a_provider(query):
    provider = StubGeocoder("only", KORENMARKT)
    with pytest.raises(GeocodeNotFound):
        Geocoder([provider]).geocode(query)
    assert provider.queries == []


def test_suggest_needs_three_characters():
    provider = StubGeocoder("only", suggestions=[Suggestion("1", "Gent", KORENMARKT)])
    assert Geocoder([provider]).suggest("Ge") == []
    assert provider.queries == []
    assert len(Geocoder([provider]).suggest("Gen")) == 1


def test_suggest_falls_back_then_gives_up():
    failing = StubGeocoder("failing", suggestions=ProviderUnavailable("failing", "down"))
    working = StubGeocoder("working", suggestions=[Suggestion("1", "Gent", KORENMARKT)])
    assert Geocoder([failing, working]).suggest("Gent")[0].label == "Gent"
    assert Geocoder([failing]).suggest("Gent") == []
