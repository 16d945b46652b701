"""
Admin routes: Health checks and metrics
"""
import time

from quart import Blueprint, current_app, jsonify

from vegan_guides.config import get_config
from vegan_guides.src.metrics import get_metrics as get_metrics_dict

bp = Blueprint('admin', __name__)


@bp.route('/healthz')
async def healthz():
    """Lightweight health endpoint returning component status."""
    from vegan_guides.src.app import aiohttp_session, redis_client

    config = get_config()
    status = {
        'app': 'ok',
        'time': time.time(),
        'ready': bool(aiohttp_session is not None),
        'redis': bool(redis_client is not None),
        'google_places': bool(config.google_api_key),
        'groq': bool(config.groq_api_key),
    }
    return jsonify(status)


@bp.route('/metrics/json')
async def metrics_json():
    """Return simple JSON metrics (counters and latency summaries)"""
    try:
        metrics = await get_metrics_dict()
    except Exception:
        current_app.logger.exception('Failed to collect metrics')
        return jsonify({'error': 'metrics_unavailable'}), 500
    return jsonify(metrics)


def register(app):
    """Register admin blueprint with app"""
    app.register_blueprint(bp)
