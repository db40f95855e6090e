# backend/backoffice/routes/system.py
"""
System health endpoint.
"""

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)


@system_bp.get("/health")
def health():
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        status = "healthy"
    except Exception:
        current_app.logger.exception("Database health check failed")
        status = "unhealthy"
    elapsed_ms = round((time.time() - start_time) * 1000, 2)
    code = 200 if status == "healthy" else 503
    return jsonify({"status": status, "database": {"status": status, "latency_ms": elapsed_ms}}), code
