# services/billing_service.py
from sqlmodel import Session, func, select

from models.models import Member, Project, Role
from schemas.billing_schema import Billing, BillingLine

SEAT_UNIT_PRICE = 10
PROJECT_UNIT_PRICE = 20


def _line(amount: int, unit: int) -> BillingLine:
    if amount < 0:
        raise ValueError("Billing amounts cannot be negative")
    return BillingLine(amount=amount, unit=unit, price=amount * unit)


def calculate_billing(seats: int, projects: int) -> Billing:
    """Usage-based bill: every seat and every project at a flat unit price."""
    seats_line = _line(seats, SEAT_UNIT_PRICE)
    projects_line = _line(projects, PROJECT_UNIT_PRICE)
    return Billing(
        seats=seats_line,
        projects=projects_line,
        total=seats_line.price + projects_line.price,
    )


def get_organization_billing(session: Session, organization_id: str) -> Billing:
    # BILLING members manage invoices and do not occupy a seat
    seats = session.exec(
        select(func.count(Member.id)).where(
            Member.organization_id == organization_id,
            Member.role != Role.BILLING.value,
        )
    ).one()

    projects = session.exec(
        select(func.count(Project.id)).where(Project.organization_id == organization_id)
    ).one()

    return calculate_billing(seats, projects)
