import os
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import PyMongoError
import structlog

from budgets import BudgetStore, summarize_items
from database import connect, ensure_indexes, serialize_doc
from errors import AppError, app_error_handler, store_error_handler, validation_error_handler
from expenses import ExpenseStore
from logging_config import configure_logging
from schemas import (
    BudgetItemIn,
    CreateBudgetRequest,
    ExpenseRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    SummaryResponse,
    TokenResponse,
)
from security import TokenService, get_current_user, make_password_context
from settings import Settings, get_settings
from users import AuthService, UserStore

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None,
               tokens: Optional[TokenService] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    db = database if database is not None else connect(settings.database_url, settings.database_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ensure_indexes(db)
        logger.info("indexes_ready", database=db.name)
        yield

    app = FastAPI(title="Budget Tracker API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    tokens = tokens or TokenService(
        settings.jwt_secret,
        ttl=timedelta(hours=settings.token_ttl_hours),
        algorithm=settings.jwt_algorithm,
    )

    app.state.db = db
    app.state.tokens = tokens
    app.state.auth = AuthService(UserStore(db), tokens, make_password_context(settings.bcrypt_rounds))
    app.state.budgets = BudgetStore(db)
    app.state.expenses = ExpenseStore(db)

    register_routes(app)
    return app


def get_auth(request: Request) -> AuthService:
    return request.app.state.auth


def get_budgets(request: Request) -> BudgetStore:
    return request.app.state.budgets


def get_expenses(request: Request) -> ExpenseStore:
    return request.app.state.expenses


def register_routes(app: FastAPI) -> None:

    @app.get("/")
    def read_root():
        return {"message": "Budget Tracker Backend is running"}

    @app.get("/api/health")
    def health(request: Request):
        response = {"backend": "ok", "database": "ok"}
        try:
            request.app.state.db.command("ping")
        except PyMongoError as e:
            logger.warning("database_unavailable", error=str(e))
            response["database"] = "unavailable"
        return response

    # Auth
    @app.post("/api/auth/register", response_model=TokenResponse)
    def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth)):
        return TokenResponse(token=auth.register(payload.email, payload.password))

    @app.post("/api/auth/login", response_model=TokenResponse)
    def login(payload: LoginRequest, auth: AuthService = Depends(get_auth)):
        return TokenResponse(token=auth.login(payload.email, payload.password))

    # Budget
    @app.get("/api/budget")
    def get_budget(user_id: str = Depends(get_current_user), budgets: BudgetStore = Depends(get_budgets)):
        budget = budgets.get(user_id)
        if not budget:
            return {"exists": False}
        return {"exists": True, "budget": serialize_doc(budget)}

    @app.post("/api/budget", response_model=MessageResponse)
    def create_budget(payload: CreateBudgetRequest, user_id: str = Depends(get_current_user),
                      budgets: BudgetStore = Depends(get_budgets)):
        budgets.create(user_id, payload.items)
        return {"message": "Budget created successfully"}

    @app.get("/api/budget/summary", response_model=SummaryResponse)
    def budget_summary(user_id: str = Depends(get_current_user), budgets: BudgetStore = Depends(get_budgets),
                       expenses: ExpenseStore = Depends(get_expenses)):
        budget = budgets.get(user_id)
        return {
            "exists": budget is not None,
            "budget": summarize_items(budget.get("items", []) if budget else []),
            "spending": summarize_items(expenses.list(user_id)),
        }

    @app.post("/api/budget/item")
    def add_budget_item(payload: BudgetItemIn, user_id: str = Depends(get_current_user),
                        budgets: BudgetStore = Depends(get_budgets)):
        item = budgets.add_item(user_id, payload.name, payload.amount, payload.category)
        return {"message": "Item added", "item": serialize_doc(item)}

    @app.put("/api/budget/{item_id}")
    def update_budget_item(item_id: str, payload: BudgetItemIn, user_id: str = Depends(get_current_user),
                           budgets: BudgetStore = Depends(get_budgets)):
        item = budgets.update_item(user_id, item_id, payload.name, payload.amount, payload.category)
        return {"message": "Item updated", "item": serialize_doc(item)}

    @app.delete("/api/budget/{item_id}", response_model=MessageResponse)
    def delete_budget_item(item_id: str, user_id: str = Depends(get_current_user),
                           budgets: BudgetStore = Depends(get_budgets)):
        budgets.delete_item(user_id, item_id)
        return {"message": "Item deleted"}

    # Expenses
    @app.get("/api/expenses")
    def list_expenses(user_id: str = Depends(get_current_user), expenses: ExpenseStore = Depends(get_expenses)):
        return serialize_doc(expenses.list(user_id))

    @app.post("/api/expenses")
    def create_expense(payload: ExpenseRequest, user_id: str = Depends(get_current_user),
                       expenses: ExpenseStore = Depends(get_expenses)):
        expense = expenses.create(user_id, payload.amount, payload.category, payload.note, payload.date)
        return serialize_doc(expense)

    @app.put("/api/expenses/{expense_id}")
    def update_expense(expense_id: str, payload: ExpenseRequest, user_id: str = Depends(get_current_user),
                       expenses: ExpenseStore = Depends(get_expenses)):
        expense = expenses.update(user_id, expense_id, payload.amount, payload.category, payload.note,
                                  payload.date)
        return serialize_doc(expense)

    @app.delete("/api/expenses/{expense_id}", response_model=MessageResponse)
    def delete_expense(expense_id: str, user_id: str = Depends(get_current_user),
                       expenses: ExpenseStore = Depends(get_expenses)):
        expenses.delete(user_id, expense_id)
        return {"message": "Expense deleted"}


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", get_settings().port))
    uvicorn.run(app, host="0.0.0.0", port=port)
