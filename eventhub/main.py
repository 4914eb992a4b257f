from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import settings
from .exception_handlers import register_exception_handlers
from .logging_config import configure_logging
from .routers import events, reservations

configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Create events, browse upcoming ones and reserve a seat",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

app.include_router(events.router)
app.include_router(reservations.router)


@app.get("/")
def read_root():
    return {"message": settings.APP_NAME, "status": "running"}


@app.get("/health")
def health():
    return {"status": "OK", "message": "Server is running with DynamoDB"}
