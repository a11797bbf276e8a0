from contextlib import asynccontextmanager
from fastapi import FastAPI
from billsplit.core.logging_config import setup_logging
from billsplit.db.session import async_session
from billsplit.services.category_service import seed_categories
from billsplit.api.v1.routes.expense import router as expense_router
from billsplit.api.v1.routes.balances import router as balances_router
from billsplit.api.v1.routes.analytics import router as analytics_router
from billsplit.api.v1.routes.currency import router as currency_router
from billsplit.api.v1.routes.settlement import router as settlement_router
from billsplit.api.v1.routes.category import router as category_router
from billsplit.api.v1.routes.dashboard import router as dashboard_router

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    async with async_session() as db:
        await seed_categories(db)
    yield

app = FastAPI(title="Billsplit Backend", lifespan=lifespan)

@app.get("/")
async def root():
    return {"message": "Billsplit Backend is live"}

app.include_router(expense_router, prefix="/api/v1/expenses")
app.include_router(balances_router, prefix="/api/v1/balances")
app.include_router(analytics_router, prefix="/api/v1/analytics")
app.include_router(currency_router, prefix="/api/v1/currencies")
app.include_router(settlement_router, prefix="/api/v1/settlements")
app.include_router(category_router, prefix="/api/v1/categories")
app.include_router(dashboard_router, prefix="/api/v1/dashboard")
