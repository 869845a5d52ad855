from decimal import Decimal
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from wager_bridge.channel import EnvelopeChannel, HttpTransport
from wager_bridge.config import Surface, settings
from wager_bridge.database import Base, SessionLocal, engine
from wager_bridge.errors import WagerBridgeError
from wager_bridge.journal import EnvelopeJournal
from wager_bridge.logging_config import get_logger
from wager_bridge.player import PlayerSession

logger = get_logger("player-surface")

Base.metadata.create_all(bind=engine)
app = FastAPI(title="Player Surface")


class WagerRequest(BaseModel):
    amount: Decimal


class SpinRequest(BaseModel):
    amount: Optional[Decimal] = None


channel = EnvelopeChannel(
    HttpTransport(settings.catalog_message_url),
    own_origin=settings.player_origin,
    expected_peer_origin=settings.catalog_origin,
)
journal = EnvelopeJournal(SessionLocal, Surface.PLAYER)
session = PlayerSession(channel, journal=journal)


def get_session() -> PlayerSession:
    return session


@app.exception_handler(WagerBridgeError)
async def wager_bridge_error_handler(request: Request, exc: WagerBridgeError):
    logger.warning("Request %s %s failed condition=%s detail=%s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())


@app.get("/session")
async def session_state(player: PlayerSession = Depends(get_session)):
    return player.snapshot()


@app.post("/wager")
async def select_wager(request: WagerRequest, player: PlayerSession = Depends(get_session)):
    player.select_wager(request.amount)
    return player.snapshot()


@app.post("/spin")
async def spin(request: Optional[SpinRequest] = None, player: PlayerSession = Depends(get_session)):
    result = await player.spin(request.amount if request else None)
    logger.info(
        "Spin result wager=%s outcome=%s balance=%s correlationId=%s",
        result.wager,
        result.outcome,
        result.balance,
        result.correlation_id,
    )
    return {
        "wager": result.wager,
        "outcome": result.outcome,
        "balance": result.balance,
        "correlationId": result.correlation_id,
        "session": player.snapshot(),
    }


@app.post("/messages", status_code=202)
async def receive_message(
    message: Any = Body(...),
    x_origin: Optional[str] = Header(None),
    player: PlayerSession = Depends(get_session),
):
    # unauthenticated or malformed messages are dropped without telling the sender
    await player.channel.receive(message, x_origin)
    return {"status": "accepted"}


@app.get("/journal")
async def list_journal():
    return journal.list_records()


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
