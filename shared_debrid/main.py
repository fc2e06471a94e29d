from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared_debrid.api.routes import router
from shared_debrid.config.settings import get_settings
from shared_debrid.integrations.gist import GistClient
from shared_debrid.integrations.memory_store import memory_stores


def build_document_store(auth_token: str, gist_id: str):
    settings = app.state.get_settings()
    if settings.SHARED_DEBRID_STORE == 'memory':
        return memory_stores.get(gist_id)
    return GistClient(
        auth_token,
        gist_id,
        base_url=settings.SHARED_DEBRID_GITHUB_API_URL,
        timeout=settings.SHARED_DEBRID_STORE_TIMEOUT_SEC,
    )


app = FastAPI(title="Shared Debrid Notifier", version="1.0.0")
# Stremio fetches addon resources cross-origin
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
app.include_router(router)

# NOTE: lazy-loaded so app import does not require env during tests.
app.state.get_settings = get_settings
app.state.store_factory = build_document_store
