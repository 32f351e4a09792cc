from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from ..extensions import db
from ..storage.errors import IdentifierExhaustedError

bp = Blueprint("collections_api", __name__)

PAGINATION_ARGS = {"limit", "offset"}


@bp.before_request
def check_collection_name():
    name = (request.view_args or {}).get("name")
    if name is not None and secure_filename(name) != name:
        return jsonify({"error": "Invalid collection name"}), 400


@bp.errorhandler(IdentifierExhaustedError)
def id_exhausted(err):
    current_app.logger.warning("id allocation failed: %s", err)
    return jsonify({"error": str(err)}), 503


def _list_field(key):
    """`payload[key]` when the body is an object holding a list there, else None."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None
    value = payload.get(key, [])
    return value if isinstance(value, list) else None


def _int_arg(value, default=None):
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@bp.get("/collections")
def list_collections():
    return jsonify(db.store.list_collections())


@bp.get("/collections/<name>/documents")
def list_documents(name):
    filt = {k: v for k, v in request.args.items() if k not in PAGINATION_ARGS}
    docs = db.run(db.store.find(
        name,
        filt,
        limit=_int_arg(request.args.get("limit")),
        offset=_int_arg(request.args.get("offset"), 0),
    ))
    return jsonify(docs)


@bp.post("/collections/<name>/query")
def query_documents(name):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Body must be a JSON object"}), 400
    filt = payload.get("filter") or {}
    if not isinstance(filt, dict):
        return jsonify({"error": "filter must be an object"}), 400
    docs = db.run(db.store.find(
        name,
        filt,
        limit=_int_arg(payload.get("limit")),
        offset=_int_arg(payload.get("offset"), 0),
    ))
    return jsonify(docs)


@bp.post("/collections/<name>/documents")
def create_document(name):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Document must be a JSON object"}), 400
    doc = db.run(db.store.create(name, payload))
    return jsonify(doc), 201


@bp.post("/collections/<name>/documents/bulk")
def bulk_create_documents(name):
    payload = request.get_json(silent=True)
    if not isinstance(payload, list) or not all(isinstance(d, dict) for d in payload):
        return jsonify({"error": "Body must be a list of JSON objects"}), 400
    docs = db.run(db.store.bulk_create(name, payload))
    return jsonify(docs), 201


@bp.post("/collections/<name>/documents/lookup")
def lookup_documents(name):
    ids = _list_field("ids")
    if ids is None:
        return jsonify({"error": "ids must be a list"}), 400
    return jsonify(db.run(db.store.bulk_find_by_ids(name, [str(i) for i in ids])))


@bp.get("/collections/<name>/documents/<doc_id>")
def get_document(name, doc_id):
    doc = db.run(db.store.find_by_id(name, doc_id))
    if not doc:
        return jsonify({"error": "Not found"}), 404
    return jsonify(doc)


@bp.patch("/collections/<name>/documents/<doc_id>")
def update_document(name, doc_id):
    updates = request.get_json(silent=True)
    if not isinstance(updates, dict):
        return jsonify({"error": "Updates must be a JSON object"}), 400
    doc = db.run(db.store.update(name, doc_id, updates))
    if not doc:
        return jsonify({"error": "Not found"}), 404
    return jsonify(doc)


@bp.patch("/collections/<name>/documents")
def bulk_update_documents(name):
    updates = _list_field("updates")
    if updates is None:
        return jsonify({"error": "updates must be a list"}), 400
    entries = [
        {"id": str(u["id"]), "data": u.get("data") or {}}
        for u in updates
        if isinstance(u, dict) and "id" in u
    ]
    return jsonify(db.run(db.store.bulk_update(name, entries)))


@bp.delete("/collections/<name>/documents/<doc_id>")
def delete_document(name, doc_id):
    if not db.run(db.store.delete(name, doc_id)):
        return jsonify({"error": "Not found"}), 404
    return jsonify({"deleted": True})


@bp.post("/collections/<name>/documents/delete")
def bulk_delete_documents(name):
    ids = _list_field("ids")
    if ids is None:
        return jsonify({"error": "ids must be a list"}), 400
    count = db.run(db.store.bulk_delete(name, [str(i) for i in ids]))
    return jsonify({"deleted": count})
