# app/errors.py
"""
Errori di dominio del portale partner.

Ogni classe corrisponde a un "tipo" di errore visibile al chiamante:
status HTTP + codice machine-readable. Gli state machine (lead, onboarding)
sollevano queste eccezioni, i router le lasciano propagare e l'handler
registrato in app.main le traduce in JSON.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PortalError(Exception):
    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code, "detail": self.message}
        body.update(self.extra)
        return body


class Unauthorized(PortalError):
    status_code = 401
    code = "unauthorized"


class NotFound(PortalError):
    status_code = 404
    code = "not_found"


class PartnerNotFound(NotFound):
    code = "partner_not_found"


class Forbidden(PortalError):
    status_code = 403
    code = "forbidden"


class InvalidInput(PortalError):
    status_code = 400
    code = "invalid_input"


class InvalidStatus(InvalidInput):
    code = "invalid_status"


class AcknowledgmentRequired(InvalidInput):
    code = "acknowledgment_required"


class InvalidTransition(InvalidInput):
    code = "invalid_transition"


class TerminalStateViolation(PortalError):
    status_code = 409
    code = "terminal_state_violation"


class OnboardingStepSkipped(PortalError):
    status_code = 409
    code = "onboarding_step_skipped"


class ConcurrentModification(PortalError):
    status_code = 409
    code = "concurrent_modification"


# ---------------------------------------------------------
# HANDLERS
# ---------------------------------------------------------
async def _portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    if exc.status_code >= 409:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": InvalidInput.code, "detail": "Invalid request payload.", "fields": fields},
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # niente dettagli interni al client
    logger.exception("Errore non gestito su %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": "An unexpected error occurred. Please try again later."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalError, _portal_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
