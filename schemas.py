"""
Database Schemas for the Budget Tracker API

Each stored Pydantic model represents a collection in MongoDB.
Collection name is the lowercase of the class name (e.g., User -> "user").
Request bodies live beside them so routes and stores share one vocabulary.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    email: str = Field(..., description="Email address, stored as supplied")
    password_hash: str = Field(..., description="BCrypt password hash")


class BudgetItemIn(BaseModel):
    name: str
    amount: float
    category: str = Field(..., description="Free-text label, e.g. Housing, Food")


class Expense(BaseModel):
    userId: str
    amount: float
    category: str
    note: str = ""
    date: datetime


# Requests

# passlib refuses secrets over 4096 bytes; 1024 characters stays under that in UTF-8.
MAX_PASSWORD_LENGTH = 1024


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., max_length=MAX_PASSWORD_LENGTH)


class CreateBudgetRequest(BaseModel):
    items: List[BudgetItemIn] = Field(default_factory=list)


class ExpenseRequest(BaseModel):
    amount: float
    category: str
    note: Optional[str] = None
    date: Optional[datetime] = None


# Responses

class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str


class Totals(BaseModel):
    total: float = 0.0
    categories: Dict[str, float] = Field(default_factory=dict)


class SummaryResponse(BaseModel):
    exists: bool
    budget: Totals
    spending: Totals
