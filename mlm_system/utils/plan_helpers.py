# mlm_system/utils/plan_helpers.py
"""
Plan resolution helpers. Pure functions over a user and a catalog.
"""
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from models.plan import InvestmentPlan
from models.user import User


def loadCatalog(session: Session, names: Optional[Iterable[str]] = None) -> Dict[str, InvestmentPlan]:
    """Plans keyed by name; all plans when names is None."""
    query = session.query(InvestmentPlan)
    if names is not None:
        names = list(names)
        if not names:
            return {}
        query = query.filter(InvestmentPlan.name.in_(names))
    return {plan.name: plan for plan in query.order_by(InvestmentPlan.planID).all()}


def highestPlan(user: User, catalog: Dict[str, InvestmentPlan]) -> Optional[InvestmentPlan]:
    """
    The plan among user's activePlans with the highest price.
    Ties keep the first match in activePlans order; unknown names are ignored.
    """
    best = None
    bestPrice = None
    for name in user.activePlans or []:
        plan = catalog.get(name)
        if plan is None:
            continue
        price = Decimal(str(plan.price or 0))
        if bestPrice is None or price > bestPrice:
            best, bestPrice = plan, price
    return best
