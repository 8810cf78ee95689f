from flask import Blueprint, jsonify

from thisorthat.pairs.catalog import metadata
from thisorthat.taxonomy import valid_sources, valid_types

bp = Blueprint("metadata", __name__, url_prefix="/metadata")


@bp.route("/")
def get_metadata():
    return jsonify(metadata())


@bp.route("/valid-types")
def get_valid_types():
    return jsonify(valid_types())


@bp.route("/valid-sources")
def get_valid_sources():
    return jsonify(valid_sources())
