"""
Stockroom — Inventory Web Pages (server-rendered)
===================================================

What:  The classic MVC flavour of the inventory feature: an HTML page listing
       all items with an "add item" form.
How:   Jinja2 templates rendered by Starlette; the form posts back to
       /inventory/add and, on success, redirects to the list (Post/Redirect/Get).
       Data access goes through the same InventoryService as the JSON API.

Routes:
    GET  /                 → 307 redirect to /inventory
    GET  /inventory        → list page
    POST /inventory/add    → 303 redirect on success, 400 + re-rendered form on errors
"""

import logging
from pathlib import Path
from typing import Dict

from fastapi import APIRouter, Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.config import settings
from stockroom.database import get_db_session
from stockroom.exceptions import StockroomError, ValidationError
from stockroom.middleware.request_id import request_id_var
from stockroom.schemas.inventory import InventoryItemCreate
from stockroom.services.inventory_service import inventory_service

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(PACKAGE_ROOT / "templates"))
STATIC_DIR = PACKAGE_ROOT / "static"

# Sent on every page outside development, error pages included
HSTS_HEADERS = {"Strict-Transport-Security": "max-age=31536000"}

router = APIRouter(tags=["Web"], include_in_schema=False)


async def _render_index(
    request: Request,
    db: AsyncSession,
    form: Dict[str, str],
    errors: Dict[str, str],
    status_code: int = 200,
) -> HTMLResponse:
    items = await inventory_service.list_items(db)
    return templates.TemplateResponse(
        request,
        "inventory/index.html",
        {"items": items, "form": form, "errors": errors},
        status_code=status_code,
    )


@router.get("/")
async def home() -> RedirectResponse:
    return RedirectResponse(url="/inventory")


@router.get("/inventory", response_class=HTMLResponse)
async def inventory_index(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> HTMLResponse:
    return await _render_index(request, db, form={}, errors={})


@router.post("/inventory/add", response_class=HTMLResponse)
async def inventory_add(
    request: Request,
    name: str = Form(default=""),
    quantity: str = Form(default="0"),
    price: str = Form(default="0"),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Handle the add-item form.

    Form values arrive as strings; they are parsed through the same schema as
    the JSON API so both surfaces enforce identical rules. Invalid input is
    shown back to the user next to the offending fields.
    """
    form = {"name": name, "quantity": quantity, "price": price}
    errors: Dict[str, str] = {}

    try:
        payload = InventoryItemCreate(
            name=name,
            quantity=quantity or "0",
            price=price or "0",
        )
        inventory_service.validate(payload)
    except SchemaValidationError as e:
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "form"
            errors.setdefault(field, err["msg"])
    except ValidationError as e:
        errors[e.field or "form"] = e.message

    if errors:
        logger.info("Rejected inventory form: %s", ", ".join(sorted(errors)))
        return await _render_index(request, db, form=form, errors=errors, status_code=400)

    await inventory_service.create_item(db, payload)
    return RedirectResponse(url="/inventory", status_code=303)


def register_error_pages(app: FastAPI) -> None:
    """
    HTML error page for the web service.

    Development keeps the JSON handlers from main.py (they include the message);
    everywhere else users get a generic page with the request ID to quote.
    These handlers run outside the HTTP middleware stack, so they set the
    HSTS header themselves.
    """
    if settings.is_development:
        return

    @app.exception_handler(StockroomError)
    async def handle_app_error(request: Request, exc: StockroomError):
        logger.error("[%s] %s", request_id_var.get(""), exc.message)
        return templates.TemplateResponse(
            request,
            "error.html",
            {"request_id": request_id_var.get("")},
            status_code=500,
            headers=HSTS_HEADERS,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return templates.TemplateResponse(
            request,
            "error.html",
            {"request_id": request_id_var.get("")},
            status_code=500,
            headers=HSTS_HEADERS,
        )
