from flask import Blueprint, Response, current_app

bp = Blueprint("stream", __name__)


@bp.route("/stream")
def vote_stream():
    broadcaster = current_app.services.broadcaster
    q = broadcaster.subscribe()
    current_app.logger.info("[stream] client connected (%d subscribers)", broadcaster.subscriber_count)
    return Response(
        broadcaster.stream(q=q),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
