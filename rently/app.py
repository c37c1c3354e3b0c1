#!/usr/bin/env python3

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rently.core import db
from rently.routes import api
from rently.configs import ALLOWED_ORIGINS, LOG_LEVEL, OPTIONS
from rently import __version__ as VERSION

logging.basicConfig(
    level=LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Rently API",
    description="Rently: rental marketplace lending core",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api.router, prefix="/v1/api")

@app.on_event("startup")
def startup():
    db.init()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rently.app:app", **OPTIONS)
