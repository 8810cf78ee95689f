from flask import Blueprint, current_app, jsonify

from thisorthat.errors import NotFound
from thisorthat.pairs import record_vote
from thisorthat.pairs.votes import list_votes, random_voted_pair
from thisorthat.routes import int_arg, str_arg

bp = Blueprint("votes", __name__)


@bp.route("/vote")
def vote():
    pair_id = int_arg("id", required=True)
    option = str_arg("option", required=True)
    result = record_vote(current_app.services, pair_id, option)
    current_app.logger.info("[votes] pair %s option %s", pair_id, option)
    return jsonify(result)


@bp.route("/get-all-votes")
def get_all_votes():
    limit = int_arg("limit", 20, minimum=1, maximum=100)
    offset = int_arg("offset", 0, minimum=0)
    return jsonify(list_votes(limit=limit, offset=offset))


@bp.route("/get-random-pair-votes")
def get_random_pair_votes():
    payload = random_voted_pair()
    if payload is None:
        raise NotFound("No pairs with votes found")
    return jsonify(payload)
