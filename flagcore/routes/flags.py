# flagcore/routes/flags.py
from flask import Blueprint, current_app, jsonify, request

from ..errors import NotFoundError, ValidationError
from ..models import ENVIRONMENTS, FlagPatch
from ..security import admin_required

bp = Blueprint("flags", __name__)


def _manager():
    return current_app.extensions["flag_manager"]


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("request body must be a JSON object")
    return data


def _optional(data, field, kind, kind_name):
    value = data.get(field)
    if value is not None and not isinstance(value, kind):
        raise ValidationError(f"{field} must be a {kind_name}")
    return value


@bp.post("/flags")
@admin_required
def create_flag():
    data = _json_body()
    key, name = data.get("key"), data.get("name")
    if not isinstance(key, str) or not isinstance(name, str) or not key.strip() or not name.strip():
        raise ValidationError("key and name are required fields")
    description = _optional(data, "description", str, "string")

    summary = _manager().create_flag(key.strip(), name.strip(), description)
    return jsonify(summary.serialize()), 201


@bp.get("/flags")
def list_flags():
    env = request.args.get("environment") or current_app.config["FLAGS_DEFAULT_ENVIRONMENT"]
    flags = _manager().list_flags(env)
    return jsonify([f.serialize() for f in flags]), 200


@bp.get("/flags/<key>")
def get_flag(key):
    summary = _manager().get_flag(key, request.args.get("environment"))
    return jsonify(summary.serialize()), 200


@bp.put("/flags/<key>")
@admin_required
def update_flag(key):
    data = _json_body()
    patch = FlagPatch(
        name=_optional(data, "name", str, "string"),
        description=_optional(data, "description", str, "string"),
        enabled=_optional(data, "enabled", bool, "boolean"),
    )
    summary = _manager().update_flag(
        key,
        patch,
        scope=request.args.get("scope"),
        environment=request.args.get("environment"),
    )
    return jsonify(summary.serialize()), 200


@bp.delete("/flags/<key>")
@admin_required
def delete_flag(key):
    _manager().delete_flag(key)
    return "", 204


def _toggle_environment():
    env = request.args.get("environment")
    if not env:
        # a toggle without a target environment is reported as a lookup miss
        raise NotFoundError("Key and environment are required.")
    return env


@bp.put("/flags/<key>/enable")
@admin_required
def enable_flag(key):
    record = _manager().enable_flag(key, _toggle_environment())
    return jsonify(record.serialize()), 200


@bp.put("/flags/<key>/disable")
@admin_required
def disable_flag(key):
    record = _manager().disable_flag(key, _toggle_environment())
    return jsonify(record.serialize()), 200


@bp.get("/environments")
def list_environments():
    return jsonify([e.value for e in ENVIRONMENTS]), 200
