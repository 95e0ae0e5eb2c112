import os
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import ledger
from config import settings
from database import LedgerStore, create_store
from schemas import (
    Agent,
    Collection,
    DashboardStats,
    Retailer,
    RetailerIn,
    RetailerRollup,
    Transaction,
    TransactionIn,
    TransactionRow,
    User,
    UserUpdate,
    ValidationFailure,
)

logger = logging.getLogger(__name__)


# -----------------------------
# Utilities
# -----------------------------

def get_db(request: Request) -> LedgerStore:
    return request.app.state.db


def unwrap(result, not_found: str):
    """Turn a store write result into a response or an HTTP error."""
    if result is None:
        raise HTTPException(status_code=404, detail=not_found)
    if isinstance(result, ValidationFailure):
        raise HTTPException(status_code=400, detail={"errors": result.errors})
    return result


def current_day() -> date:
    return settings.DASHBOARD_TODAY or datetime.now(timezone.utc).date()


# -----------------------------
# FastAPI App
# -----------------------------

def create_app(store: Optional[LedgerStore] = None) -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, debug=settings.DEBUG)
    app.state.db = store or create_store(
        demo_data=settings.SEED_DEMO_DATA, latency_ms=settings.API_LATENCY_MS
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:

    @app.get("/")
    def root():
        return {"message": f"{settings.APP_NAME} running", "version": settings.APP_VERSION}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # -----------------------------
    # User
    # -----------------------------
    @app.get("/user", response_model=User)
    def get_user(db: LedgerStore = Depends(get_db)):
        user = db.fetch_user()
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    @app.patch("/user", response_model=User)
    def update_user(payload: UserUpdate, db: LedgerStore = Depends(get_db)):
        try:
            return db.update_user(payload)
        except LookupError:
            raise HTTPException(status_code=404, detail="User not found")

    # -----------------------------
    # Dashboard
    # -----------------------------
    @app.get("/dashboard/stats", response_model=DashboardStats)
    def dashboard_stats(
        today: Optional[date] = Query(None, description="YYYY-MM-DD, defaults to the current day"),
        db: LedgerStore = Depends(get_db),
    ):
        return db.fetch_dashboard_stats(today or current_day())

    # -----------------------------
    # Retailers
    # -----------------------------
    @app.get("/retailers", response_model=List[Retailer])
    def list_retailers(db: LedgerStore = Depends(get_db)):
        return db.fetch_retailers()

    @app.post("/retailers", response_model=Retailer)
    def create_retailer(payload: RetailerIn, db: LedgerStore = Depends(get_db)):
        return unwrap(db.create_retailer(payload.model_copy(update={"id": None})), "Retailer not found")

    @app.get("/retailers/{retailer_id}", response_model=Retailer)
    def get_retailer(retailer_id: str, db: LedgerStore = Depends(get_db)):
        return unwrap(db.fetch_retailer_by_id(retailer_id), "Retailer not found")

    @app.put("/retailers/{retailer_id}", response_model=Retailer)
    def update_retailer(retailer_id: str, payload: RetailerIn, db: LedgerStore = Depends(get_db)):
        return unwrap(db.update_retailer(payload.model_copy(update={"id": retailer_id})), "Retailer not found")

    @app.delete("/retailers/{retailer_id}")
    def delete_retailer(retailer_id: str, db: LedgerStore = Depends(get_db)):
        deleted = db.delete_retailer(retailer_id)
        if deleted is None:
            raise HTTPException(status_code=404, detail="Retailer not found")
        return {"id": deleted}

    @app.get("/retailers/{retailer_id}/rollup", response_model=RetailerRollup)
    def retailer_rollup(retailer_id: str, db: LedgerStore = Depends(get_db)):
        return db.fetch_retailer_rollup(retailer_id)

    @app.get("/retailers/{retailer_id}/collections", response_model=List[Collection])
    def list_collections(retailer_id: str, db: LedgerStore = Depends(get_db)):
        return db.fetch_collections(retailer_id)

    # -----------------------------
    # Transactions
    # -----------------------------
    @app.get("/transactions", response_model=List[TransactionRow])
    def list_transactions(
        retailer_id: Optional[str] = None,
        q: Optional[str] = Query(None, description="Search by retailer name"),
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        txn_type: str = Query(ledger.ALL_TYPES, alias="type", description="Auto-refill, Push order or All"),
        db: LedgerStore = Depends(get_db),
    ):
        names = db.retailer_names()
        txns = ledger.filter_transactions(
            db.fetch_transactions(retailer_id),
            names,
            query=q,
            start_date=start_date,
            end_date=end_date,
            txn_type=txn_type,
        )
        return [ledger.compute_transaction_view(t, names) for t in txns]

    @app.post("/transactions", response_model=Transaction)
    def create_transaction(payload: TransactionIn, db: LedgerStore = Depends(get_db)):
        return unwrap(db.create_transaction(payload.model_copy(update={"id": None})), "Transaction not found")

    @app.put("/transactions/{transaction_id}", response_model=Transaction)
    def update_transaction(transaction_id: str, payload: TransactionIn, db: LedgerStore = Depends(get_db)):
        return unwrap(
            db.update_transaction(payload.model_copy(update={"id": transaction_id})),
            "Transaction not found",
        )

    # -----------------------------
    # Agents
    # -----------------------------
    @app.get("/agents", response_model=List[Agent])
    def list_agents(db: LedgerStore = Depends(get_db)):
        return db.fetch_agents()


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", settings.PORT))
    uvicorn.run(app, host="0.0.0.0", port=port)
