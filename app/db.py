# app/db.py
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.errors import ConcurrentModification

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # SQLite (test/dev locale): stessa connessione usata da thread diversi
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def load_for_update(db: Session, model, record_id):
    """
    Carica una riga da modificare. Su Postgres prende anche il lock di riga
    (SELECT ... FOR UPDATE); il version_id del model resta comunque il
    controllo finale al flush.
    """
    q = db.query(model).filter(model.id == record_id)

    bind = db.get_bind()
    if bind is not None and bind.dialect.name == "postgresql":
        q = q.with_for_update()

    return q.first()


@contextmanager
def conflict_guard(db: Session, what: str):
    """
    Flush/commit dentro il blocco: se il version_id non corrisponde più
    (riga modificata da un'altra richiesta) fa rollback e solleva
    ConcurrentModification.
    """
    try:
        yield
    except StaleDataError:
        db.rollback()
        logger.warning("Conflitto di versione su %s", what)
        raise ConcurrentModification(
            f"{what} was modified by another request. Reload and try again."
        )
