# coupure/main.py
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# -----------------------------------------------------------------------------
# Chargement .env en local (pas sur Render/Prod), avant la lecture de la config
# -----------------------------------------------------------------------------
if os.getenv("RENDER") is None and os.getenv("ENV", "dev") == "dev":
    load_dotenv()

from coupure import config                                   # noqa: E402
from coupure.db import SessionLocal, engine                  # noqa: E402
from coupure.kinds import INCIDENT, OUTAGE                   # noqa: E402
from coupure.remote import RemoteReportService               # noqa: E402
from coupure.scheduler import start_scheduler, stop_scheduler  # noqa: E402
from coupure.storage import SqlStorage                       # noqa: E402
from coupure.store import ReportStore                        # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
log = logging.getLogger("coupure")


# -----------------------------------------------------------------------------
# Lifespan : un store par type, chargé au démarrage, + rafraîchissement optionnel
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    storage = SqlStorage(SessionLocal)
    stores = {
        kind.plural: ReportStore(kind, storage, RemoteReportService(kind))
        for kind in (OUTAGE, INCIDENT)
    }
    for store in stores.values():
        await store.load()
        log.info("[startup] %s store ready (%d reports)", store.kind.name, len(store.reports))
    app.state.stores = stores

    if config.SCHEDULER_ENABLED:
        app.state.scheduler = start_scheduler(stores.values(), config.REFRESH_INTERVAL_MIN)
    else:
        app.state.scheduler = None
        log.info("[scheduler] disabled via SCHEDULER_ENABLED=0")

    yield

    # --- Shutdown ---
    stop_scheduler()
    await engine.dispose()


# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------
app = FastAPI(title="CoupureAlert store API", lifespan=lifespan)

allowed_origins = {"http://localhost:8081", "http://localhost:19006"}

# Surcharge via ALLOWED_ORIGINS="https://foo.app,https://bar.com"
extra = (os.getenv("ALLOWED_ORIGINS") or "").strip()
if extra:
    for o in extra.split(","):
        o = o.strip()
        if o:
            allowed_origins.add(o)

app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted(allowed_origins),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,
)


@app.get("/health")
async def health():
    stores = getattr(app.state, "stores", None) or {}
    return {"ok": True, "stores": {k: s.state.value for k, s in stores.items()}}


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
from coupure.routes.reports import build_router  # noqa: E402
from coupure.routes.admin import router as admin_router  # noqa: E402
from coupure.routes.stats import router as stats_router  # noqa: E402
from coupure.routes.config import router as config_router  # noqa: E402

for _kind in (OUTAGE, INCIDENT):
    app.include_router(build_router(_kind))
app.include_router(admin_router)
app.include_router(stats_router)
app.include_router(config_router)


# -----------------------------------------------------------------------------
# Lancement local : `coupure-api` (ou `python -m coupure.main`)
# -----------------------------------------------------------------------------
def run():
    import uvicorn
    uvicorn.run(
        "coupure.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENV", "dev") == "dev",
    )


if __name__ == "__main__":
    run()
