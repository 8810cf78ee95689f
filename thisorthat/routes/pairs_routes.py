from flask import Blueprint, current_app, jsonify

from thisorthat.errors import BadInput
from thisorthat.pairs import attach_images, run_generation
from thisorthat.pairs.catalog import delete_pair, list_pair_ids, list_pairs, random_pair
from thisorthat.routes import bool_arg, int_arg, str_arg
from thisorthat.taxonomy import get_type, valid_types

bp = Blueprint("pairs", __name__)

MAX_GENERATE = 50


@bp.route("/generate-pairs")
def generate_pairs():
    count = int_arg("count", 10, minimum=1, maximum=MAX_GENERATE)
    attach = bool_arg("add_images")
    current_app.logger.info("[pairs] generating %d pairs (add_images=%s)", count, attach)
    outcome = run_generation(current_app.services, None, count, attach)
    return jsonify(outcome.to_dict())


@bp.route("/generate-pairs-by-type")
def generate_pairs_by_type():
    kind = str_arg("type", required=True).lower()
    if not get_type(kind):
        raise BadInput(f"Invalid type '{kind}'", details={"valid_types": valid_types()})
    count = int_arg("count", 10, minimum=1, maximum=MAX_GENERATE)
    attach = bool_arg("add_images")
    current_app.logger.info("[pairs] generating %d %s pairs (add_images=%s)", count, kind, attach)
    outcome = run_generation(current_app.services, kind, count, attach)
    return jsonify(outcome.to_dict())


@bp.route("/add-images")
def add_images():
    delete_missing = bool_arg("delete_missing", True)
    report = attach_images(current_app.services, delete_missing=delete_missing)
    if not report.processed:
        return jsonify({**report.to_dict(), "message": "No pairs without images found"})
    return jsonify(report.to_dict())


@bp.route("/get-random-pair")
def get_random_pair():
    return jsonify(random_pair(current_app.services))


@bp.route("/get-all-pairs")
def get_all_pairs():
    return jsonify(list_pairs(
        kind=str_arg("type"),
        source=str_arg("source"),
        limit=int_arg("limit", 20, minimum=1, maximum=100),
        offset=int_arg("offset", 0, minimum=0),
    ))


@bp.route("/get-all-pair-ids")
def get_all_pair_ids():
    return jsonify(list_pair_ids(kind=str_arg("type"), source=str_arg("source")))


@bp.route("/delete-pair", methods=["DELETE"])
def remove_pair():
    pair_id = int_arg("id", required=True)
    return jsonify(delete_pair(current_app.services, pair_id))
