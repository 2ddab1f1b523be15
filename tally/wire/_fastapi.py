"""
FastAPI application — checkout over HTTP.

    app = create_app(Stores.of(store), MemoryOrderStore(), load_settings())

Routes:
    POST /checkout/calculate          CalculateIn        → CalculateOut | ErrorOut
    POST /checkout/delivery-options   DeliveryOptionsIn  → DeliveryOptionsOut | ErrorOut
    POST /orders                      OrderIn + header   → OrderOut (201) | ErrorOut

Malformed requests answer 422 with an ErrorOut (code "invalid_request").
"""

import logging
from typing import Annotated, Any

import fastapi
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from kungfu import Ok, Error
from pydantic import BaseModel

from tally.config import Settings
from tally.store import Stores
from tally.checkout import calculate_checkout, get_delivery_options_for_items
from tally.orders import OrderStore, place_order
from tally.wire._codecs import (
    CalculateIn,
    CalculateOut,
    DeliveryOptionsIn,
    DeliveryOptionsOut,
    ErrorOut,
    OrderIn,
    OrderOut,
    status_for,
)

logger = logging.getLogger(__name__)


def _respond(body: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body.model_dump(mode="json"), status_code=status_code)


async def _invalid_request(request: fastapi.Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures in the same envelope as checkout errors."""
    problems = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        field = ".".join(loc[1:]) or ".".join(loc)
        problems.append(f"{field}: {err.get('msg', 'invalid')}")
    logger.debug("invalid request to %s: %s", request.url.path, problems)
    return _respond(ErrorOut(error="; ".join(problems), code="invalid_request"), 422)


def compile_routes(
    stores: Stores,
    orders: OrderStore,
    settings: Settings,
) -> list[tuple[str, str, Any]]:  # (method, path, route_func)
    places = settings.decimals
    currency = settings.currency

    async def calculate(req: CalculateIn) -> JSONResponse:
        result = await calculate_checkout(
            stores, req.to_domain(), req.delivery_id, req.coupon_code
        )
        match result:
            case Ok(_):
                return _respond(CalculateOut.from_domain(result, currency, places))
            case Error(e):
                return _respond(ErrorOut.from_domain(e), status_for(e))

    async def delivery_options(req: DeliveryOptionsIn) -> JSONResponse:
        result = await get_delivery_options_for_items(stores, req.to_domain())
        match result:
            case Ok(_):
                return _respond(DeliveryOptionsOut.from_domain(result, places))
            case Error(e):
                return _respond(ErrorOut.from_domain(e), status_for(e))

    async def create_order(
        req: OrderIn,
        idempotency_key: Annotated[str, fastapi.Header(alias="Idempotency-Key", min_length=1)],
    ) -> JSONResponse:
        request = req.to_domain(idempotency_key.strip(), currency)
        match await place_order(stores, orders, request, places=places):
            case Ok(placed):
                return _respond(OrderOut.from_domain(placed.order, placed.replayed), 201)
            case Error(e):
                return _respond(ErrorOut.from_domain(e), status_for(e))

    return [
        ("POST", "/checkout/calculate", calculate),
        ("POST", "/checkout/delivery-options", delivery_options),
        ("POST", "/orders", create_order),
    ]


def create_app(stores: Stores, orders: OrderStore, settings: Settings) -> fastapi.FastAPI:
    app = fastapi.FastAPI(title="tally")
    app.add_exception_handler(RequestValidationError, _invalid_request)

    for method, path, handler in compile_routes(stores, orders, settings):
        route_method = getattr(app, method.lower(), None)
        if route_method is None:
            raise ValueError(f"Unsupported HTTP method: {method}")
        route_method(path)(handler)

    logger.debug("checkout app ready (%s, %d decimals)", settings.currency, settings.decimals)
    return app


__all__ = ("compile_routes", "create_app")
