"""Unauthenticated probes."""

from fastapi import APIRouter, Request

from suitebook.api.auth import get_oidc_settings

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request) -> dict:
    """Readiness with live booking session count.

    `oidc` is false when tokens cannot be verified; anonymous searches still
    work but every signed-in call gets 401.
    """
    return {
        "status": "ok",
        "sessions": len(request.app.state.session_store),
        "oidc": get_oidc_settings().configured,
    }
