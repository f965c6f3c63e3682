# billing_schema.py
from pydantic import BaseModel


class BillingLine(BaseModel):
    amount: int
    unit: int
    price: int


class Billing(BaseModel):
    seats: BillingLine
    projects: BillingLine
    total: int


class BillingResponse(BaseModel):
    billing: Billing
