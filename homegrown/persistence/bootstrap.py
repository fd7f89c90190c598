from homegrown.persistence.session import engine
from homegrown.persistence.models import Base
from homegrown.identity.gate import BackendGate
from homegrown.common.logger import get_logger

logger = get_logger(__name__)

# Settled once the schema is in place; resolvers wait on it before reading
backend_gate = BackendGate()


def init_db(gate: BackendGate = backend_gate):
    logger.info("Creating DB tables if missing")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as exc:
        gate.set_failed(exc)
        raise
    gate.set_ready()
