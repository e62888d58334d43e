from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from worker.app.models import metadata

from .config import settings
from .db import engine
from .routers import backups, schedules

app = FastAPI(title="TenantVault API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"]
    if settings.tenantvault_base_url == "*"
    else [settings.tenantvault_base_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.on_event("startup")
def startup():
    metadata.create_all(bind=engine)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(backups.router)
app.include_router(schedules.router)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response: Response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"
    if request.url.scheme == "https":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response
