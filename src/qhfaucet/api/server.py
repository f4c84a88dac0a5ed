"""HTTP surface for the faucet.

Endpoints:
- /: Static faucet page
- /health: Validator health (200 if any validator is online, else 503)
- /status: Faucet status
- /drip: POST {"address": ...} to request tokens
- /metrics: Prometheus metrics endpoint
"""

import logging
import uuid
from pathlib import Path
from string import Template

from aiohttp import web
from prometheus_client import REGISTRY, generate_latest

from qhfaucet.faucet.service import DripResult, DripStatus, FaucetService
from qhfaucet.observability.health import HealthAggregator
from qhfaucet.observability.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

INDEX_TEMPLATE = Path(__file__).parent / "static" / "index.html"

REQUEST_ID_HEADER = "X-Request-ID"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}

DRIP_STATUS_CODES = {
    DripStatus.SUCCESS: 200,
    DripStatus.INVALID_ADDRESS: 400,
    DripStatus.RATE_LIMITED: 429,
    DripStatus.CAPACITY_EXCEEDED: 503,
    DripStatus.SUBMISSION_FAILED: 500,
}

BAD_BODY_MESSAGE = "Request body must be a JSON object with an 'address' string"


def _drip_payload(result: DripResult) -> dict:
    payload = {
        "success": result.success,
        "message": result.message,
        "tx_hash": result.tx_hash,
        "amount": result.amount,
    }
    if result.retry_after_seconds is not None:
        payload["retry_after_seconds"] = result.retry_after_seconds
    return payload


@web.middleware
async def request_id_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Bind a request ID to the logging context and echo it back."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    set_request_id(request_id)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers[REQUEST_ID_HEADER] = request_id
        raise
    finally:
        clear_request_id()
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Allow any origin, method and header; answer preflight requests directly."""
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


class FaucetServer:
    """HTTP server exposing the faucet.

    Parameters
    ----------
    service : FaucetService
        Faucet service handling drips and status.
    aggregator : HealthAggregator
        Validator health aggregator for /health.
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    """

    # Default to 0.0.0.0 so the faucet is reachable from outside a container.
    def __init__(
        self,
        service: FaucetService,
        aggregator: HealthAggregator,
        host: str = "0.0.0.0",  # noqa: S104
        port: int = 8080,
    ):
        self._service = service
        self._aggregator = aggregator
        self._host = host
        self._port = port
        self._index_html: str | None = None
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def build_app(self) -> web.Application:
        """Create the aiohttp application with all routes and middleware."""
        app = web.Application(middlewares=[request_id_middleware, cors_middleware])
        app.router.add_get("/", self._handle_index)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/status", self._handle_status)
        app.router.add_post("/drip", self._handle_drip)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.build_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()

        logger.info(
            "Faucet listening",
            extra={"host": self._host, "port": self._port},
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Faucet HTTP server stopped")

    def _render_index(self) -> str:
        if self._index_html is None:
            status = self._service.get_status()
            self._index_html = Template(INDEX_TEMPLATE.read_text(encoding="utf-8")).safe_substitute(
                drip_amount=status.drip_amount,
                rate_limit_seconds=status.rate_limit_seconds,
            )
        return self._index_html

    async def _handle_index(self, _request: web.Request) -> web.Response:
        """Handle / (static faucet page)."""
        return web.Response(text=self._render_index(), content_type="text/html")

    async def _handle_health(self, _request: web.Request) -> web.Response:
        """Handle /health (validator liveness and block height)."""
        report = await self._aggregator.check()
        status_code = 200 if report.healthy else 503
        return web.json_response(report.to_dict(), status=status_code)

    async def _handle_status(self, _request: web.Request) -> web.Response:
        """Handle /status."""
        return web.json_response(self._service.get_status().to_dict())

    async def _handle_drip(self, request: web.Request) -> web.Response:
        """Handle POST /drip."""
        try:
            body = await request.json()
        except ValueError:
            body = None

        address = body.get("address") if isinstance(body, dict) else None
        if not isinstance(address, str):
            return web.json_response(
                {"success": False, "message": BAD_BODY_MESSAGE, "tx_hash": None, "amount": "0"},
                status=400,
            )

        result = await self._service.drip(address)

        headers = {}
        if result.retry_after_seconds is not None:
            headers["Retry-After"] = str(result.retry_after_seconds)
        return web.json_response(
            _drip_payload(result),
            status=DRIP_STATUS_CODES[result.status],
            headers=headers,
        )

    async def _handle_metrics(self, _request: web.Request) -> web.Response:
        """Handle /metrics (Prometheus)."""
        metrics = generate_latest(REGISTRY)
        return web.Response(
            body=metrics,
            content_type="text/plain",
            charset="utf-8",
        )
