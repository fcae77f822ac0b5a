from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.common.error_handlers import register_error_handlers
from app.core.config import settings
from app.core.database import Base, engine
from app.api.v1 import audit_log, auth, cash_in_hand, drive, receipt, transaction, user
from app.logger_config import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Local/sqlite convenience; deployed databases are migrated with alembic
    Base.metadata.create_all(bind=engine)
    logger.info(f"Church Ledger API started ({settings.APP_ENV})")
    yield


app = FastAPI(title="Church Ledger", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
)

register_error_handlers(app)

# Register API routers
app.include_router(auth.router, prefix="/api/auth", tags=["authentication"])
app.include_router(user.router, prefix="/api/users", tags=["users"])
app.include_router(
    cash_in_hand.router, prefix="/api/sheets/cash-in-hand", tags=["cash in hand"])
app.include_router(
    receipt.router, prefix="/api/sheets/receipts", tags=["receipts"])
app.include_router(
    audit_log.router, prefix="/api/sheets/audit-log", tags=["audit log"])
app.include_router(
    transaction.router, prefix="/api/sheets", tags=["transactions"])
app.include_router(drive.router, prefix="/api/drive", tags=["drive"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the Church Ledger APIs!"}


@app.get("/health")
def health():
    return {"status": "ok"}
