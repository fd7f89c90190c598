from contextlib import asynccontextmanager

from fastapi import FastAPI

from homegrown.common.logger import get_logger
from homegrown.persistence.bootstrap import init_db

# Routers
from homegrown.auth_routes import router as auth_router
from homegrown.persistence.account_api import router as account_router
from homegrown.persistence.read_api import router as family_read_router
from homegrown.persistence.write_api import router as family_write_router

logger = get_logger(__name__)


# ------------------------------------------------------------
# App Init
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Settles the readiness gate the account-context resolver waits on
    init_db()
    logger.info("Homegrown API started")
    yield


app = FastAPI(title="Homegrown", lifespan=lifespan)

app.include_router(auth_router)
app.include_router(account_router)
app.include_router(family_read_router)
app.include_router(family_write_router)


@app.get("/health")
def health():
    return {"status": "ok"}
