"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkme.api import chat, connections, ops, profiles, proximity
from linkme.api.errors import install_error_handlers
from linkme.infra import postgres
from linkme.obs import init as obs_init
from linkme.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.store_backend == "postgres":
		try:
			await postgres.init_pool()
		except (asyncpg.PostgresError, OSError):
			# Requests retry the pool lazily and surface data_unavailable meanwhile.
			logger.warning("postgres pool unavailable at startup", exc_info=True)
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="LinkMe Proximity API", lifespan=lifespan)
install_error_handlers(app)

if settings.cors_allow_origins:
	allow_origins = list(settings.cors_allow_origins)
elif settings.is_dev():
	allow_origins = [
		"http://localhost:3000",
		"http://127.0.0.1:3000",
	]
else:
	allow_origins = []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)

app.include_router(proximity.router)
app.include_router(profiles.router)
app.include_router(connections.router)
app.include_router(chat.router)
app.include_router(ops.router)
