"""Pydantic schemas for profiles and the client, case, document and invoice registry."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


CaseStatus = Literal["open", "closed", "pending"]
InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str | None = None
    plan: str
    billing_interval: str
    subscription_status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PlanChangeRequest(BaseModel):
    plan: str


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    created_at: datetime | None = None


class CaseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: CaseStatus = "open"
    client_id: uuid.UUID | None = None
    due_date: date | None = None


class CaseUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: CaseStatus | None = None
    client_id: uuid.UUID | None = None
    due_date: date | None = None


class CaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None = None
    status: str
    client_id: uuid.UUID | None = None
    due_date: date | None = None
    created_at: datetime | None = None


class DocumentCreate(BaseModel):
    """Metadata for a file already uploaded under the tenant's storage prefix."""

    name: str = Field(min_length=1, max_length=255)
    file_path: str = Field(min_length=1, max_length=1024)
    file_type: str | None = Field(default=None, max_length=100)
    size_bytes: int | None = Field(default=None, ge=0)
    case_id: uuid.UUID | None = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    file_path: str
    file_type: str | None = None
    size_bytes: int | None = None
    case_id: uuid.UUID | None = None
    created_at: datetime | None = None


class InvoiceCreate(BaseModel):
    invoice_number: str = Field(min_length=1, max_length=50)
    issue_date: date
    due_date: date
    status: InvoiceStatus = "draft"
    client_id: uuid.UUID | None = None
    case_id: uuid.UUID | None = None
    subtotal: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, max_digits=5, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    total: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: str | None = None


class InvoiceUpdate(BaseModel):
    invoice_number: str | None = Field(default=None, min_length=1, max_length=50)
    issue_date: date | None = None
    due_date: date | None = None
    status: InvoiceStatus | None = None
    client_id: uuid.UUID | None = None
    case_id: uuid.UUID | None = None
    subtotal: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    tax_rate: Decimal | None = Field(default=None, ge=0, max_digits=5, decimal_places=2)
    tax_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    total: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    notes: str | None = None


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    invoice_number: str
    issue_date: date
    due_date: date
    status: str
    client_id: uuid.UUID | None = None
    case_id: uuid.UUID | None = None
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
