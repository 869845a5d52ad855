import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wager_bridge import models  # noqa: E402
from wager_bridge.channel import EnvelopeChannel, LoopbackTransport  # noqa: E402
from wager_bridge.config import Surface  # noqa: E402
from wager_bridge.database import Base, build_engine  # noqa: E402
from wager_bridge.journal import EnvelopeJournal  # noqa: E402

from tests._helpers import CATALOG_ORIGIN, PLAYER_ORIGIN  # noqa: E402


@pytest.fixture
def link():
    """
    Two channels joined by queued loopback transports; nothing is delivered
    until the test flushes the relevant direction.
    """
    to_player = LoopbackTransport()
    to_catalog = LoopbackTransport()
    catalog_channel = EnvelopeChannel(to_player, CATALOG_ORIGIN, PLAYER_ORIGIN)
    player_channel = EnvelopeChannel(to_catalog, PLAYER_ORIGIN, CATALOG_ORIGIN)
    to_player.connect(player_channel)
    to_catalog.connect(catalog_channel)
    return SimpleNamespace(
        catalog=catalog_channel,
        player=player_channel,
        to_player=to_player,
        to_catalog=to_catalog,
    )


@pytest.fixture
def db_factory():
    engine = build_engine("sqlite://")
    models.Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def journals(db_factory):
    return SimpleNamespace(
        catalog=EnvelopeJournal(db_factory, Surface.CATALOG),
        player=EnvelopeJournal(db_factory, Surface.PLAYER),
    )
