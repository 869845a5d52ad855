from fastapi import Body, Depends, FastAPI, Header, Request, Response
from fastapi.responses import JSONResponse
from typing import Any, Optional

from wager_bridge.catalog import CatalogSession
from wager_bridge.channel import EnvelopeChannel, HttpTransport
from wager_bridge.clients.catalog_client import build_catalog_source
from wager_bridge.config import Surface, settings
from wager_bridge.database import Base, SessionLocal, engine
from wager_bridge.errors import CatalogUnavailable, WagerBridgeError
from wager_bridge.journal import EnvelopeJournal
from wager_bridge.logging_config import get_logger
from wager_bridge.reconciliation import generate_reconciliation_csv


logger = get_logger("catalog-surface")

Base.metadata.create_all(bind=engine)
app = FastAPI(title="Catalog Surface")

channel = EnvelopeChannel(
    HttpTransport(settings.player_message_url),
    own_origin=settings.catalog_origin,
    expected_peer_origin=settings.player_origin,
)
journal = EnvelopeJournal(SessionLocal, Surface.CATALOG)
session = CatalogSession(channel, build_catalog_source(), journal=journal)


def get_session() -> CatalogSession:
    return session


@app.exception_handler(WagerBridgeError)
async def wager_bridge_error_handler(request: Request, exc: WagerBridgeError):
    logger.warning("Request %s %s failed condition=%s detail=%s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())


@app.on_event("startup")
async def startup_event():
    logger.info("Loading catalog for balance=%s", session.balance)
    try:
        await session.load_catalog()
    except CatalogUnavailable as exc:
        # the next GET /items tries again
        logger.warning("Catalog not loaded at startup: %s", exc)


@app.get("/items")
async def list_items(catalog: CatalogSession = Depends(get_session)):
    if not catalog.items:
        await catalog.load_catalog()
    return [item.model_dump(mode="json", by_alias=True) for item in catalog.items.values()]


@app.post("/items/{item_id}/select")
async def select_item(item_id: int, catalog: CatalogSession = Depends(get_session)):
    selection = await catalog.select_item(item_id)
    return {
        "status": "handed_off",
        "selection": selection.model_dump(mode="json", by_alias=True),
    }


@app.get("/balance")
async def balance(catalog: CatalogSession = Depends(get_session)):
    return catalog.snapshot()


@app.post("/messages", status_code=202)
async def receive_message(
    message: Any = Body(...),
    x_origin: Optional[str] = Header(None),
    catalog: CatalogSession = Depends(get_session),
):
    # unauthenticated or malformed messages are dropped without telling the sender
    await catalog.channel.receive(message, x_origin)
    return {"status": "accepted"}


@app.get("/journal")
async def list_journal():
    return journal.list_records()


@app.get("/reconciliation_data")
async def download_reconciliation_csv():
    csv_text, mismatch_count = await generate_reconciliation_csv(catalog_records=journal.list_records())
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={
            "Content-Disposition": 'attachment; filename="reconciliation.csv"',
            "X-Mismatch-Count": str(mismatch_count),
        },
    )


@app.post("/admin/clear-journal")
async def clear_journal():
    """
    Dangerous: clears this surface's envelope journal.
    """
    deleted = journal.clear()
    return {"status": "cleared", "deleted": deleted}


@app.get("/health")
async def health():
    return {"status": "ok"}
