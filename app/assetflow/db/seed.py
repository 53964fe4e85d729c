import logging

from sqlalchemy import select

from app.assetflow.core.config import settings
from app.assetflow.core.logging import configure_logging, log_json
from app.assetflow.db.models import Store

logger = logging.getLogger(__name__)


def _get_or_create_store(db, name: str) -> Store:
    store = db.execute(select(Store).where(Store.name == name)).scalars().first()
    if store:
        return store
    store = Store(name=name)
    db.add(store)
    db.flush()
    log_json(logger, {"event": "seed.store_created", "store_id": str(store.id), "name": name})
    return store


def run_seed(db) -> Store | None:
    if not settings.SEED_CENTRAL_WAREHOUSE:
        return None
    store = _get_or_create_store(db, settings.CENTRAL_WAREHOUSE_NAME)
    db.commit()
    return store


if __name__ == "__main__":
    from app.assetflow.db.session import SessionLocal

    configure_logging()
    with SessionLocal() as session:
        run_seed(session)
