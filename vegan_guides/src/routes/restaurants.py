"""
Restaurant routes: whole-city search, nearby search and the photo proxy
"""
import math
import time

from quart import Blueprint, Response, current_app, jsonify, request

from vegan_guides.config import get_config
from vegan_guides.providers import multi_provider
from vegan_guides.providers.base import PlacesProvider, ProviderError, ProviderNotConfiguredError
from vegan_guides.providers.places_provider import GooglePlacesProvider
from vegan_guides.src.metrics import increment, observe_latency

bp = Blueprint('restaurants', __name__)

DEFAULT_CITY = "Spain"
MIN_RADIUS = 100
MAX_RADIUS = 50000
DEFAULT_PHOTO_CONTENT_TYPE = "image/jpeg"


def get_places_provider() -> PlacesProvider:
    from vegan_guides.src import app as app_module
    return GooglePlacesProvider(session=app_module.aiohttp_session)


def _not_configured(e: ProviderNotConfiguredError):
    current_app.logger.error("Places search unavailable: %s", e)
    return jsonify({"error": "GOOGLE_API_KEY not configured", "code": "not_configured"}), 500


def _parse_float(value):
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    # nan/inf parse as floats but are not usable coordinates or radii
    return number if math.isfinite(number) else None


@bp.route("/api/restaurants", methods=["GET"])
async def list_restaurants():
    """
    Whole-region search.
    Query: city (default "Spain")
    Response JSON: list of restaurants, highest rated first
    """
    from vegan_guides.src import app as app_module

    city = (request.args.get("city") or "").strip() or DEFAULT_CITY
    await increment('restaurants.requests')
    start_time = time.time()

    cache = get_config().cache_config
    redis_client = None if cache.disabled else app_module.redis_client
    try:
        restaurants = await multi_provider.discover_city(
            get_places_provider(), city, redis_client=redis_client, cache_ttl=cache.ttl_search
        )
    except ProviderNotConfiguredError as e:
        await increment('restaurants.errors')
        return _not_configured(e)
    except ProviderError as e:
        await increment('restaurants.errors')
        current_app.logger.error("City search failed for %s: %s", city, e)
        return jsonify({"error": "Failed to fetch restaurants"}), 500

    await observe_latency('restaurants.latency_ms', (time.time() - start_time) * 1000.0)
    return jsonify([r.to_dict() for r in restaurants])


@bp.route("/api/restaurants/nearby", methods=["GET"])
async def nearby_restaurants():
    """
    Proximity search around a point.
    Query: lat, lng (required), radius in meters (default 5000, clamped to 100..50000)
    """
    lat = _parse_float(request.args.get("lat"))
    lng = _parse_float(request.args.get("lng"))
    if lat is None or lng is None or not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        return jsonify({"error": "lat and lng are required"}), 400

    radius = _parse_float(request.args.get("radius"))
    if request.args.get("radius") and radius is None:
        return jsonify({"error": "radius must be a number"}), 400
    if radius is None:
        radius = get_config().discovery_config.default_radius
    radius = int(min(max(radius, MIN_RADIUS), MAX_RADIUS))

    await increment('nearby.requests')
    start_time = time.time()
    try:
        restaurants = await multi_provider.discover_nearby(get_places_provider(), lat, lng, radius)
    except ProviderNotConfiguredError as e:
        await increment('nearby.errors')
        return _not_configured(e)
    except ProviderError as e:
        await increment('nearby.errors')
        current_app.logger.warning("Nearby search failed at %s,%s: %s", lat, lng, e)
        return jsonify({"error": "Failed to fetch restaurants"}), 500

    await observe_latency('nearby.latency_ms', (time.time() - start_time) * 1000.0)
    return jsonify([r.to_dict() for r in restaurants])


@bp.route("/api/restaurants/photo", methods=["GET"])
async def restaurant_photo():
    """Photo proxy: keeps the Places key on the server."""
    ref = request.args.get("ref")
    if not ref:
        return "Missing ref", 400

    await increment('photo.requests')
    max_width = get_config().discovery_config.photo_max_width
    try:
        body, content_type = await get_places_provider().fetch_photo(ref, max_width)
    except ProviderNotConfiguredError as e:
        return _not_configured(e)
    except ProviderError as e:
        current_app.logger.warning("Photo proxy failed: %s", e)
        return "Photo unavailable", 502

    return Response(body, content_type=content_type or DEFAULT_PHOTO_CONTENT_TYPE)


def register(app):
    """Register restaurants blueprint with app"""
    app.register_blueprint(bp)
