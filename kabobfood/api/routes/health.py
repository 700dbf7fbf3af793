"""Healthcheck эндпоинты."""

from fastapi import APIRouter

from kabobfood.core.config import get_settings

router = APIRouter()


@router.get("/healthz")
def health() -> dict:
    """Вернуть статус приложения.

    Returns
    -------
    dict
        JSON со статусом.
    """

    return {"status": "ok"}


@router.get("/version")
def version() -> dict:
    return {"version": get_settings().app_version}
