import logging

from flask import Blueprint, current_app, jsonify, request

from letter_agents.services.errors import (
    GenerationFailure,
    LetterError,
    SessionNotOpenError,
    ValidationError,
)
from server.services.letter_service import LetterService

logger = logging.getLogger(__name__)

api_blueprint = Blueprint("api", __name__)

_ERROR_STATUS = (
    (ValidationError, 400),
    (SessionNotOpenError, 409),
    (GenerationFailure, 502),
)


def _letter_service() -> LetterService:
    return current_app.extensions["letter_service"]


@api_blueprint.errorhandler(LetterError)
def handle_letter_error(exc: LetterError):
    if exc.code == "timeout":
        status = 504
    else:
        status = next((code for exc_type, code in _ERROR_STATUS if isinstance(exc, exc_type)), 500)
    if status >= 500:
        logger.warning("Letter operation failed: %s", exc)
    return jsonify({"error": str(exc), "code": exc.code, "details": exc.details}), status


@api_blueprint.get("/health")
def healthcheck():
    """Lightweight health probe for uptime checks."""
    return jsonify({"status": "ok"}), 200


@api_blueprint.post("/letters")
def generate_letter():
    """
    Generate a new letter and open a fresh refinement session:
    {
      "subject_context": "Dr. Zhang, Professor of Computer Science, ...",
      "source_material": "学生参与了..."
    }
    """
    payload = request.get_json(silent=True) or {}
    document = _letter_service().generate(
        payload.get("subject_context"),
        payload.get("source_material"),
    )
    return jsonify({"document": document.to_dict()}), 201


@api_blueprint.post("/letters/refine")
def refine_letter():
    payload = request.get_json(silent=True) or {}
    service = _letter_service()
    outcome = service.refine(payload.get("message"))
    snapshot = service.snapshot()
    body = outcome.to_dict()
    body["document"] = snapshot.document.to_dict() if snapshot.document else None
    return jsonify(body), 200


@api_blueprint.get("/letters/current")
def current_letter():
    """Current document, transcript and status; also backs copy-to-clipboard."""
    return jsonify(_letter_service().snapshot().to_dict()), 200
