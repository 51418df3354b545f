"""
FastAPI application for send-push.

One route receives the database webhook for a new notification row and runs
a single dispatch. Every request gets its own HTTP client, store, minter and
dispatcher; nothing is shared between invocations.
"""
import logging
import secrets
import time

import httpx
from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from send_push.config import Settings, get_settings
from send_push.dispatcher import Dispatcher, DispatchOutcome
from send_push.errors import PushError, Unauthorized
from send_push.minter import TokenMinter
from send_push.store import PostgrestStore

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Outbound calls (token exchange, FCM, PostgREST)
HTTP_TIMEOUT_SECONDS = 10.0


app = FastAPI(
    title="send-push",
    description="Delivers notification rows to devices through FCM",
    version="1.0.0",
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    logger.debug("REQUEST START - %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            "REQUEST ERROR - %s %s - Error: %s: %s - Duration: %.2fs",
            request.method, request.url.path, type(e).__name__, e, duration,
        )
        raise
    duration = time.time() - start_time
    logger.info(
        "REQUEST END - %s %s - Status: %s - Duration: %.2fs",
        request.method, request.url.path, response.status_code, duration,
    )
    return response


@app.exception_handler(PushError)
async def push_error_handler(request: Request, exc: PushError):
    if exc.status_code >= 500:
        logger.error("PUSH: Function Crash: %s: %s", type(exc).__name__, exc.message)
    else:
        logger.warning("PUSH: Rejected request: %s", exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


# --- Dependencies ---

def verify_webhook_secret(
    authorization: str | None = Header(None, alias="Authorization"),
    settings: Settings = Depends(get_settings),
) -> None:
    """Check the Bearer shared secret on the inbound trigger."""
    expected = settings.inbound_secret
    if not authorization or not expected:
        raise Unauthorized("Unauthorized")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthorized("Unauthorized")

    if not secrets.compare_digest(parts[1].strip().encode(), expected.encode()):
        raise Unauthorized("Unauthorized")


async def get_dispatcher(settings: Settings = Depends(get_settings)):
    """Build a dispatcher bound to a fresh HTTP client for this request."""
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
        store = PostgrestStore(settings.store_url, settings.store_key, client)
        yield Dispatcher(
            settings=settings,
            store=store,
            minter=TokenMinter(client),
            client=client,
        )


# --- Routes ---

@app.post("/", dependencies=[Depends(verify_webhook_secret)])
async def send_push(request: Request, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Deliver the notification record carried by the webhook body."""
    body = await request.body()

    try:
        result = await dispatcher.dispatch(body)
    except PushError:
        raise
    except Exception as e:
        logger.exception("PUSH: Function Crash: %s", e)
        return JSONResponse({"error": str(e)}, status_code=500)

    if result.outcome == DispatchOutcome.NO_TOKEN:
        return PlainTextResponse("No token", status_code=200)

    # Sent and ProviderRejected both answer 200 so the webhook is not retried
    return Response(
        content=result.provider_response or "",
        status_code=200,
        media_type="application/json",
    )


@app.get("/api/health")
def health():
    return {"status": "ok"}
