import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gallera.database import init_db
from gallera.routes import matchmaking, results, roosters, rules, runtime, teams, tournaments

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Gallera Tournament API"

app = FastAPI(title=APP_NAME)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(rules.router, prefix="/api", tags=["rules"])
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(roosters.router, prefix="/api", tags=["roosters"])
app.include_router(matchmaking.router, prefix="/api", tags=["matchmaking"])

# Live fights (results recording; closes the day automatically)
app.include_router(runtime.router, prefix="/api", tags=["runtime"])
app.include_router(results.router, prefix="/api", tags=["results"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("%s started with %d routes", APP_NAME, len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
