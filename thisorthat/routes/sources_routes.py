import io

from flask import Blueprint, current_app, jsonify, send_file

from thisorthat.errors import BadInput, NotFound, ServiceError
from thisorthat.sources import Provider, resolve_source
from thisorthat.sources.spotify import refresh_spotify_token
from thisorthat.routes import str_arg
from thisorthat.utils.image_processing import OUTPUT_CONTENT_TYPE, normalize_image

bp = Blueprint("sources", __name__)


@bp.route("/test/<source>")
def test_source(source):
    """Resolve one query through a single provider and return the normalized PNG."""
    provider = Provider.parse(source)
    if provider is None:
        raise NotFound(f"Unknown source '{source}'")
    query = str_arg("query", required=True)
    hint = str_arg("type")

    ctx = current_app.services
    result = resolve_source(ctx, provider, query, hint)
    if not result.image:
        raise NotFound(f"No image found for '{query}' on {provider.value}")

    data = normalize_image(result.image, provider.value, size=ctx.image_size, timeout=ctx.fetch_timeout)
    if not data:
        raise NotFound(f"Image for '{query}' could not be processed")

    current_app.logger.info("[sources] test %s %r -> %s", provider.value, query, result.external_id)
    return send_file(io.BytesIO(data), mimetype=OUTPUT_CONTENT_TYPE, download_name=f"{provider.value}.png")


@bp.route("/spotify/refresh-token")
def spotify_refresh_token():
    ctx = current_app.services
    if not ctx.config.get("SPOTIFY_CLIENT_ID") or not ctx.config.get("SPOTIFY_CLIENT_SECRET"):
        raise BadInput("Spotify credentials are not configured")
    if not refresh_spotify_token(ctx):
        raise ServiceError("Failed to refresh Spotify token")
    return jsonify({"ok": True, "message": "Spotify token refreshed"})
