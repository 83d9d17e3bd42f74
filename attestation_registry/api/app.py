"""
Attestation Registry — HTTP API.

FastAPI application exposing the registry operations:
- Authority: enroll agencies, grant and revoke their permission
- Agencies: register subjects, cast attestations
- Anyone: read agencies, subjects, attestors and emitted events

The caller identity is taken from the ``X-Caller-Address`` header, which
the upstream authentication layer is trusted to set. The API never
authenticates callers itself.

Routes are plain functions so Starlette runs them in its threadpool;
registry calls block on the registry lock and on journal writes.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import Base64Bytes, BaseModel

from attestation_registry.config import settings
from attestation_registry.registry.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RegistryError,
    RegistryValidationError,
)
from attestation_registry.registry.schema import EventType, Gender

logger = logging.getLogger(__name__)


# ── Pydantic request models ────────────────────────────────────


class EnrollRequest(BaseModel):
    address: str
    name: str


class RegisterSubjectRequest(BaseModel):
    subject_id: str
    profile_data: Base64Bytes
    name: str
    gender: Gender
    date_of_birth: str


class AttestRequest(BaseModel):
    is_valid: bool


class ApiState:
    """Mutable application state injected at startup."""

    def __init__(self) -> None:
        self.registry: Any = None
        self.journal: Any = None
        self.startup_time: datetime = datetime.now(timezone.utc)


state = ApiState()


# ── Application lifecycle ──────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the registry from settings unless one was injected."""
    if state.registry is None:
        from attestation_registry.server import build_registry

        state.registry, state.journal = build_registry(settings)
    logger.info("Attestation Registry API starting — authority=%s", state.registry.authority)

    yield

    logger.info("Attestation Registry API shut down")


app = FastAPI(
    title="Attestation Registry",
    description="Permissioned identity-attestation registry",
    version="0.1.0",
    lifespan=lifespan,
)


_STATUS_BY_ERROR: list[tuple[type[RegistryError], int]] = [
    (AuthorizationError, 403),
    (ConflictError, 409),
    (NotFoundError, 404),
    (RegistryValidationError, 422),
]


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _STATUS_BY_ERROR if isinstance(exc, error_type)),
        400,
    )
    logger.info(
        "Rejected %s %s: %s (%s)", request.method, request.url.path, exc.code, exc.message,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "detail": exc.message},
    )


def _registry() -> Any:
    if state.registry is None:
        raise HTTPException(status_code=503, detail="Registry not initialized")
    return state.registry


def caller_identity(
    caller: str | None = Header(default=None, alias=settings.caller_header),
) -> str:
    """Authenticated caller identity supplied by the upstream gateway."""
    if not caller:
        raise HTTPException(status_code=401, detail=f"Missing {settings.caller_header} header")
    return caller


# ── Routes: Agencies ───────────────────────────────────────────


@app.post("/agencies", status_code=201)
def enroll_agency(body: EnrollRequest, caller: str = Depends(caller_identity)):
    """Authority: enroll a new agency."""
    number = _registry().enroll(caller, body.address, body.name)
    return {"address": body.address, "registration_number": number}


@app.post("/agencies/{address}/permit")
def permit_agency(address: str, caller: str = Depends(caller_identity)):
    """Authority: restore a banned agency's permission."""
    _registry().set_permitted(caller, address)
    return _registry().get_agency(address)


@app.post("/agencies/{address}/revoke")
def revoke_agency(address: str, caller: str = Depends(caller_identity)):
    """Authority: ban an agency."""
    _registry().revoke_agency(caller, address)
    return _registry().get_agency(address)


@app.get("/agencies")
def list_agencies():
    return {"agencies": _registry().list_agencies()}


@app.get("/agencies/{address}")
def get_agency(address: str):
    record = _registry().get_agency(address)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Agency {address} not enrolled")
    return record


@app.get("/authority")
def get_authority():
    address, record = _registry().get_authority()
    return {"address": address, "record": record}


# ── Routes: Subjects ───────────────────────────────────────────


@app.post("/subjects", status_code=201)
def register_subject(
    body: RegisterSubjectRequest, caller: str = Depends(caller_identity)
):
    """Permitted agency: register a new subject."""
    registry = _registry()
    registry.register(
        caller,
        body.profile_data,
        body.name,
        body.gender,
        body.date_of_birth,
        body.subject_id,
    )
    return registry.get_subject(body.subject_id)


@app.post("/subjects/{subject_id}/attestations")
def attest_subject(
    subject_id: str, body: AttestRequest, caller: str = Depends(caller_identity)
):
    """Permitted agency: attest a subject as valid or invalid."""
    registry = _registry()
    registry.attest(caller, subject_id, body.is_valid)
    return registry.get_subject(subject_id)


@app.get("/subjects")
def list_subjects():
    return {"subjects": _registry().list_subjects()}


@app.get("/subjects/{subject_id}")
def get_subject(subject_id: str):
    record = _registry().get_subject(subject_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Subject {subject_id} not registered")
    return record


@app.get("/subjects/{subject_id}/attestors")
def get_attestors(subject_id: str):
    return {"subject_id": subject_id, "attestors": _registry().get_attestors(subject_id)}


# ── Routes: Events & Journal ───────────────────────────────────


@app.get("/events")
def list_events(event_type: EventType | None = None):
    return {"events": _registry().get_events(event_type)}


@app.get("/journal/verify")
def verify_journal():
    if state.journal is None:
        return JSONResponse({"valid": None, "message": "Event journal disabled"})

    is_valid, entries, message = state.journal.verify_chain()
    return JSONResponse({"valid": is_valid, "entries_verified": entries, "message": message})


# ── Health Check ───────────────────────────────────────────────


@app.get("/health")
def health():
    """Health check endpoint."""
    registry = state.registry
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": (datetime.now(timezone.utc) - state.startup_time).total_seconds(),
        "agencies": len(registry.list_agencies()) if registry is not None else 0,
        "subjects": len(registry.list_subjects()) if registry is not None else 0,
        "journal_available": state.journal is not None,
    })
