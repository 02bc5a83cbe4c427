import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from painel.routes.auth import router as auth_router
from painel.routes.profile import router as profile_router
from painel.routes.recommendations import router as recommendations_router
from painel.routes.simulations import router as simulations_router
from painel.routes.stats import router as stats_router
from painel.settings import get_settings


API_PREFIX = "/api"

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Painel de Investimentos API")

# CORS (origens do front em dev)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173", "*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Registre as rotas COM prefixo /api
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(profile_router, prefix=API_PREFIX)
app.include_router(recommendations_router, prefix=API_PREFIX)
app.include_router(simulations_router, prefix=API_PREFIX)
app.include_router(stats_router, prefix=API_PREFIX)


@app.get("/health")
def health():
    return {"ok": True}
