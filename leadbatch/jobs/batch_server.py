"""HTTP entrypoint serving batched lead lookups (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from flask import Flask, jsonify, request

from leadbatch.config import ConfigError, get_settings
from leadbatch.errors import UnresolvableLocation, UpstreamError, ValidationError
from leadbatch.etl.transform import parse_batch_request
from leadbatch.jobs.run_batch import run_batch

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, makes no upstream calls."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "page_size": settings.page_size,
                "max_pages": settings.max_pages,
                "max_lookahead_pages": settings.max_lookahead_pages,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/api/leads")
def fetch_leads() -> Any:
    """
    Return the next batch of unseen businesses.
    Required JSON fields: api_key, location, business_type, batch_size, batch_start_index
    Optional: existing_businesses (list of rows carrying "Google Place ID")
    """
    payload: Dict[str, Any] = request.get_json(silent=True)

    try:
        batch_request = parse_batch_request(payload)
    except ValidationError as exc:
        return jsonify({"error": exc.message, "field": exc.field}), 400

    logger.info(
        "Batch request: business_type=%s location=%s start=%d size=%d existing=%d",
        batch_request.business_type,
        batch_request.location,
        batch_request.batch_start_index,
        batch_request.batch_size,
        len(batch_request.existing_place_ids),
    )

    try:
        response_payload = run_batch(batch_request)
    except UnresolvableLocation as exc:
        return jsonify({"error": str(exc)}), 422
    except UpstreamError as exc:
        logger.error("Upstream failure: %s", exc)
        return jsonify({"error": str(exc), "upstream": exc.source, "upstream_status": exc.status_code}), 502
    except Exception as exc:  # noqa: BLE001
        logger.exception("Batch lookup failed: %s", exc)
        return jsonify({"error": "internal error"}), 500

    return jsonify(response_payload), 200


def main() -> None:
    """Cloud Run injects PORT; fall back to the configured worker port locally."""
    try:
        settings = get_settings()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc

    logger.info("[BOOT] Binding on 0.0.0.0:%d", settings.worker_port)
    app.run(host="0.0.0.0", port=settings.worker_port)


if __name__ == "__main__":
    main()
