import logging

from dotenv import load_dotenv

# Load .env before any module reads configuration
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from concertops import config
from concertops.db.base import init_db
from concertops.routes import admin, ai, billing, calculators, conversations, health, profile, tours, usage

logging.basicConfig(level=config.log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="ConcertOps AI Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup():
    init_db()


app.include_router(health.router)
app.include_router(ai.router, prefix="/api")
app.include_router(usage.router, prefix="/api")
app.include_router(tours.router, prefix="/api")
app.include_router(conversations.router, prefix="/api")
app.include_router(profile.router, prefix="/api")
app.include_router(calculators.router, prefix="/api")
app.include_router(billing.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


@app.get("/")
def root():
    return {"message": "ConcertOps AI Backend running"}
