"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api import (
    appetite,
    audit_logs,
    auth,
    dime,
    invitations,
    kri,
    library,
    org_structure,
    platform,
    regulators,
    taxonomy,
    tolerance_metrics,
    users,
)
from app.core.config import settings
from app.core.exceptions import register_exception_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="ERM Admin API", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routes
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(invitations.router, prefix="/invitations", tags=["invitations"])
app.include_router(org_structure.router, prefix="/org-structure", tags=["org-structure"])
app.include_router(taxonomy.router, prefix="/taxonomy", tags=["taxonomy"])
# Appetite governance
app.include_router(appetite.router, prefix="/appetite", tags=["appetite"])
app.include_router(tolerance_metrics.router, prefix="/tolerance-metrics", tags=["tolerance-metrics"])
app.include_router(kri.router, prefix="/kris", tags=["kri"])
app.include_router(library.router, prefix="/library", tags=["library"])
app.include_router(dime.router, prefix="/dime", tags=["dime"])
app.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit-logs"])
# Super admin and regulator access
app.include_router(regulators.router, prefix="/regulators", tags=["regulators"])
app.include_router(platform.router, prefix="/platform", tags=["platform"])


@app.get("/")
def read_root():
    return {"message": "ERM Admin API"}
