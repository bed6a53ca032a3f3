import logging

from flask import Blueprint, current_app, jsonify

log = logging.getLogger(__name__)

ops_bp = Blueprint("ops", __name__)


@ops_bp.get("/")
def root_ok():
    return jsonify(service="flagcore", message="See /healthz")


@ops_bp.get("/healthz")
def healthz():
    return jsonify(status="ok")


@ops_bp.get("/readyz")
def readyz():
    try:
        current_app.extensions["flag_manager"].store.ping()
        return jsonify(ready=True)
    except Exception as e:
        log.warning("readiness check failed: %s", e)
        return jsonify(ready=False, error=str(e)), 500
