"""FastAPI application for the order service."""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import aiohttp
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings as default_settings
from .core.enrichment import EnrichmentEngine
from .core.resolver import RemoteResolver
from .core.store import OrderStore
from .core.validator import OrderValidator
from .errors import InternalError, InvalidInput, OrderNotFound, OrderServiceError
from .schemas import (
    CreateOrderRequest,
    DeleteResponse,
    EnrichedOrder,
    ErrorResponse,
    HealthResponse,
    Order,
    UpdateStatusRequest,
)
from .utils import setup_logging

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

# orders.id is a 32-bit serial, orders.status a varchar(50)
MAX_ORDER_ID = 2**31 - 1
MAX_STATUS_LENGTH = 50


def parse_order_id(raw: str) -> int:
    """Order id from the path; ids that cannot exist are reported as not found."""
    value = raw.strip()
    if not value.isdecimal() or not value.isascii():
        raise OrderNotFound()
    order_id = int(value)
    if not 0 < order_id <= MAX_ORDER_ID:
        raise OrderNotFound()
    return order_id


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[OrderStore] = None,
    resolver: Optional[RemoteResolver] = None,
) -> FastAPI:
    """Build the application.

    ``store`` and ``resolver`` may be supplied by the caller; whatever is
    not supplied is opened in the lifespan and closed on shutdown.
    """
    settings = settings or default_settings
    setup_logging("order_service", settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name}...")
        http_session: Optional[aiohttp.ClientSession] = None
        owned_store: Optional[OrderStore] = None

        order_store = store
        if order_store is None:
            owned_store = order_store = OrderStore.from_url(
                settings.database_url,
                connect_attempts=settings.db_connect_attempts,
                connect_backoff=settings.db_connect_backoff_seconds,
            )
        await order_store.init_schema()

        remote = resolver
        if remote is None:
            http_session = aiohttp.ClientSession()
            remote = RemoteResolver(
                http_session,
                settings.user_service_url,
                settings.product_service_url,
                timeout=settings.remote_timeout_seconds,
            )

        app.state.store = order_store
        app.state.enricher = EnrichmentEngine(remote)
        app.state.validator = OrderValidator(remote, order_store)
        logger.info(f"{settings.app_name} running on port {settings.port}")

        yield

        logger.info(f"Shutting down {settings.app_name}...")
        if http_session is not None:
            await http_session.close()
        if owned_store is not None:
            await owned_store.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(OrderServiceError)
    async def handle_order_service_error(request: Request, exc: OrderServiceError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
        return JSONResponse(status_code=400, content={"error": message})

    def get_store(request: Request) -> OrderStore:
        return request.app.state.store

    def get_enricher(request: Request) -> EnrichmentEngine:
        return request.app.state.enricher

    def get_validator(request: Request) -> OrderValidator:
        return request.app.state.validator

    @app.get("/api/orders", response_model=List[EnrichedOrder])
    async def list_orders(
        store: OrderStore = Depends(get_store),
        enricher: EnrichmentEngine = Depends(get_enricher),
    ):
        """List every order with user and product details"""
        try:
            orders = await store.list_all()
            return await enricher.enrich_all(orders)
        except OrderServiceError:
            raise
        except Exception as e:
            logger.error(f"Error listing orders: {str(e)}")
            raise InternalError(str(e))

    @app.get("/api/orders/{order_id}", response_model=EnrichedOrder, responses=ERROR_RESPONSES)
    async def get_order(
        order_id: str,
        store: OrderStore = Depends(get_store),
        enricher: EnrichmentEngine = Depends(get_enricher),
    ):
        """Get one order with user and product details"""
        order_id = parse_order_id(order_id)
        try:
            order = await store.get(order_id)
            if order is None:
                raise OrderNotFound()
            return await enricher.enrich(order)
        except OrderServiceError:
            raise
        except Exception as e:
            logger.error(f"Error fetching order {order_id}: {str(e)}")
            raise InternalError(str(e))

    @app.post(
        "/api/orders", response_model=Order, status_code=201, responses=ERROR_RESPONSES
    )
    async def create_order(
        payload: CreateOrderRequest, validator: OrderValidator = Depends(get_validator)
    ):
        """Validate references against the remote services and create the order"""
        try:
            return await validator.create_order(
                payload.user_id, payload.product_id, payload.quantity
            )
        except OrderServiceError:
            raise
        except Exception as e:
            logger.error(f"Error creating order: {str(e)}")
            raise InternalError(str(e))

    @app.put("/api/orders/{order_id}", response_model=Order, responses=ERROR_RESPONSES)
    async def update_order_status(
        order_id: str,
        payload: UpdateStatusRequest,
        store: OrderStore = Depends(get_store),
    ):
        """Set the order status; any non-blank label is accepted"""
        status = payload.status
        if not isinstance(status, str) or not status.strip():
            raise InvalidInput("Status is required")
        if len(status) > MAX_STATUS_LENGTH:
            raise InvalidInput(f"Status must be at most {MAX_STATUS_LENGTH} characters")
        order_id = parse_order_id(order_id)
        try:
            order = await store.update_status(order_id, status)
        except Exception as e:
            logger.error(f"Error updating order {order_id}: {str(e)}")
            raise InternalError(str(e))
        if order is None:
            raise OrderNotFound()
        logger.info(f"Order {order_id} status set to {order.status}")
        return order

    @app.delete("/api/orders/{order_id}", response_model=DeleteResponse, responses=ERROR_RESPONSES)
    async def delete_order(order_id: str, store: OrderStore = Depends(get_store)):
        order_id = parse_order_id(order_id)
        try:
            order = await store.delete(order_id)
        except Exception as e:
            logger.error(f"Error deleting order {order_id}: {str(e)}")
            raise InternalError(str(e))
        if order is None:
            raise OrderNotFound()
        logger.info(f"Order deleted: {order_id}")
        return DeleteResponse(message="Order deleted successfully", order=order)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        return HealthResponse(status="Order Service is running", port=settings.port)

    return app


app = create_app()
