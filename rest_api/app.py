# Check-in REST API: student QR validation, consent, scan and claim endpoints.
import logging
import pathlib
from typing import Any, Dict, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .error_handlers import BoundaryRoute, install_error_handlers, install_not_found
from .errors import ServerError
from .request_logging import RequestLoggerMiddleware, configure_logging
from .settings import ServerSettings
from .storage import CheckInRegistry, load_students
from .validation import parse_request

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", route_class=BoundaryRoute)


def _registry(request: Request) -> CheckInRegistry:
    return request.app.state.registry


# ---------- Student form ----------
@router.post("/validate")
async def validate_student(request: Request) -> Dict[str, Any]:
    """Exchange a student ID for a profile and a fresh QR token."""
    body = await parse_request(request, "validate_student", trim=["studentId"])
    registry = _registry(request)
    student = registry.find_student(body["studentId"])
    if student is None:
        raise ServerError("Student ID not found", 404, "STUDENT_NOT_FOUND")
    token = registry.issue_token(student.student_id)
    return {"success": True, "student": student.public_view(), "token": token}


@router.post("/consent")
async def record_consent(request: Request) -> Dict[str, Any]:
    body = await parse_request(request, "record_consent", trim=["studentId"])
    if not _registry(request).set_consent(body["studentId"], body["consented"]):
        raise ServerError("Student ID not found", 404, "STUDENT_NOT_FOUND")
    return {"success": True, "message": "Consent recorded successfully"}


# ---------- Admin scanner ----------
@router.post("/scan")
async def scan_token(request: Request) -> Dict[str, Any]:
    """Resolve a scanned token into student details and claim state."""
    body = await parse_request(request, "scan_token", trim=["token"])
    registry = _registry(request)
    student = registry.student_for_token(body["token"])
    if student is None:
        raise ServerError("Invalid QR code", 404, "INVALID_TOKEN")
    claims = registry.claim_status(student.student_id)
    return {"success": True, "student": student.public_view(), "claims": claims.to_payload()}


@router.post("/claim")
async def record_claim(request: Request) -> Dict[str, Any]:
    body = await parse_request(request, "record_claim", trim=["token"])
    registry = _registry(request)
    student = registry.student_for_token(body["token"])
    if student is None:
        raise ServerError("Invalid QR code", 404, "INVALID_TOKEN")
    if not registry.record_claim(student.student_id, body["itemType"]):
        raise ServerError("Item already claimed", 409, "ALREADY_CLAIMED")
    claims = registry.claim_status(student.student_id)
    return {"success": True, "claims": claims.to_payload()}


@router.post("/distribution-status")
async def update_distribution_status(request: Request) -> Dict[str, Any]:
    """Admin override of a student's collected flag for one item."""
    body = await parse_request(request, "update_distribution_status", trim=["studentId"])
    registry = _registry(request)
    if registry.find_student(body["studentId"]) is None:
        raise ServerError("Student ID not found", 404, "STUDENT_NOT_FOUND")
    claims = registry.set_collected(body["studentId"], body["itemType"], body["collected"])
    return {"success": True, "claims": claims.to_payload()}


@router.get("/students/all")
async def list_students(request: Request) -> Dict[str, Any]:
    """Admin table: every student with consent and distribution status."""
    students = _registry(request).list_students()
    return {"success": True, "students": students, "total": len(students)}


async def health() -> Dict[str, str]:
    return {"status": "ok"}


def create_app(
    settings: Optional[ServerSettings] = None,
    registry: Optional[CheckInRegistry] = None,
) -> FastAPI:
    """Build the API with its middleware and error chain.

    Registration order: request logger, CORS, routes, then the catch-all
    not-found route and the app-level error handlers.
    """
    settings = settings or ServerSettings.from_env()
    configure_logging(settings)

    if registry is None:
        registry = CheckInRegistry()
        if settings.students_file:
            for record in load_students(pathlib.Path(settings.students_file)):
                registry.add_student(record)
            log.info("Loaded %d students from %s", len(registry.students), settings.students_file)

    app = FastAPI(title="Event Check-in API", version="0.1.0")
    app.state.registry = registry
    app.state.settings = settings
    app.router.route_class = BoundaryRoute

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
            allow_credentials=True,
        )
    # Added last so it wraps CORS and sees every response.
    app.add_middleware(RequestLoggerMiddleware)

    app.add_api_route("/health", health, methods=["GET"])
    app.include_router(router)

    install_not_found(app)
    install_error_handlers(app)
    return app


app = create_app()


def main() -> None:
    settings: ServerSettings = app.state.settings
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
