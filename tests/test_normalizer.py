from vegan_guides.models import RestaurantRecord, maps_url_for
from vegan_guides.providers.utils import VenueNormalizer, normalize_place


def test_normalize_full_place_record():
    place = {
        "place_id": "ChIJ123",
        "name": "Vegan Bowl",
        "formatted_address": "Calle Mayor 1, Madrid",
        "geometry": {"location": {"lat": 40.41, "lng": -3.70}},
        "rating": 4.7,
        "user_ratings_total": 312,
        "price_level": 2,
        "photos": [{"photo_reference": "photo-a"}, {"photo_reference": "photo-b"}],
        "opening_hours": {"open_now": False},
    }
    r = normalize_place(place, True)
    assert r.id == "ChIJ123"
    assert r.name == "Vegan Bowl"
    assert r.address == "Calle Mayor 1, Madrid"
    assert (r.lat, r.lng) == (40.41, -3.70)
    assert r.rating == 4.7
    assert r.review_count == 312
    assert r.price_level == 2
    assert r.photo_ref == "photo-a"
    assert r.open_now is False
    assert r.is_fully_vegan is True
    assert r.maps_url == "https://www.google.com/maps/place/?q=place_id:ChIJ123"


def test_missing_optional_fields_use_defaults(make_place):
    r = VenueNormalizer.normalize_place(make_place("X"), False)
    assert r.rating == 0
    assert r.review_count == 0
    assert r.price_level is None
    assert r.photo_ref is None
    assert r.open_now is None
    assert r.is_fully_vegan is False


def test_nearby_results_fall_back_to_vicinity():
    place = {
        "place_id": "N1",
        "name": "Green Corner",
        "vicinity": "Carrer de Pelai 5",
        "geometry": {"location": {"lat": 41.38, "lng": 2.17}},
    }
    assert normalize_place(place, False).address == "Carrer de Pelai 5"


def test_maps_url_is_never_taken_from_input():
    r = RestaurantRecord.from_dict({"id": "abc", "name": "A", "mapsUrl": "https://evil.example"})
    assert r.maps_url == maps_url_for("abc")


def test_wire_round_trip_uses_camel_case(make_record):
    r = make_record("Z", rating=3.5, vegan=True, review_count=10, open_now=True)
    data = r.to_dict()
    assert data["reviewCount"] == 10
    assert data["isFullyVegan"] is True
    assert data["openNow"] is True
    assert RestaurantRecord.from_dict(data) == r
