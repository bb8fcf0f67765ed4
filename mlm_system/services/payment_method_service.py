# mlm_system/services/payment_method_service.py
"""
Payment method registry: limits and withdrawal fees.
"""
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
import logging

from models import PaymentMethod
from mlm_system.config.ledger import PaymentMethodType, PaymentMethodStatus, toMoney, ZERO, HUNDRED
from mlm_system.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "name", "type", "accountTitle", "accountNumber", "instructions",
    "minAmount", "maxAmount", "feePercent", "status",
}


class PaymentMethodService:

    def __init__(self, session: Session):
        self.session = session

    def _validate(self, fields: dict):
        if "type" in fields and fields["type"] not in {t.value for t in PaymentMethodType}:
            raise ValidationError(f"Unknown payment method type: {fields['type']}")
        if "status" in fields and fields["status"] not in {s.value for s in PaymentMethodStatus}:
            raise ValidationError(f"Unknown payment method status: {fields['status']}")
        for key in ("minAmount", "maxAmount", "feePercent"):
            if key in fields:
                fields[key] = toMoney(fields[key])
                if fields[key] < ZERO:
                    raise ValidationError(f"{key} cannot be negative")
        if fields.get("feePercent", ZERO) > HUNDRED:
            raise ValidationError("feePercent cannot exceed 100")
        if fields.get("maxAmount") and fields.get("minAmount") and fields["maxAmount"] < fields["minAmount"]:
            raise ValidationError("maxAmount must be greater than minAmount")

    def createMethod(self, name: str, type: str, minAmount=0, maxAmount=0, feePercent=0,
                     accountTitle: str = None, accountNumber: str = None,
                     instructions: str = None, status: str = PaymentMethodStatus.ENABLED.value) -> PaymentMethod:
        if not name:
            raise ValidationError("Payment method name is required")
        fields = dict(name=name, type=type, minAmount=minAmount, maxAmount=maxAmount, feePercent=feePercent,
                      accountTitle=accountTitle, accountNumber=accountNumber,
                      instructions=instructions, status=status)
        self._validate(fields)

        method = PaymentMethod(**fields)
        self.session.add(method)
        self.session.flush()
        logger.info(f"Payment method {method.methodID} ({name}, {type}) created")
        return method

    def getMethod(self, methodId: int) -> PaymentMethod:
        method = self.session.query(PaymentMethod).filter_by(methodID=methodId).first()
        if not method:
            raise NotFound("PaymentMethod", methodId)
        return method

    def updateMethod(self, methodId: int, **changes) -> PaymentMethod:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown payment method fields: {', '.join(sorted(unknown))}")

        method = self.getMethod(methodId)
        merged = {
            "minAmount": method.minAmount,
            "maxAmount": method.maxAmount,
            "feePercent": method.feePercent,
            **changes
        }
        self._validate(merged)
        for field in changes:
            setattr(method, field, merged[field])

        self.session.flush()
        return method

    def deleteMethod(self, methodId: int):
        method = self.getMethod(methodId)
        self.session.delete(method)
        self.session.flush()
        logger.info(f"Payment method {methodId} deleted")

    def listMethods(self, type: str = None, enabledOnly: bool = False) -> List[PaymentMethod]:
        query = self.session.query(PaymentMethod)
        if type:
            query = query.filter_by(type=type)
        if enabledOnly:
            query = query.filter_by(status=PaymentMethodStatus.ENABLED.value)
        return query.order_by(PaymentMethod.methodID).all()

    def findByName(self, name: str, type: str) -> Optional[PaymentMethod]:
        if not name:
            return None
        return self.session.query(PaymentMethod).filter_by(name=name, type=type).first()

    @staticmethod
    def validateAmount(method: PaymentMethod, amount: Decimal):
        """Raise ValidationError when amount is outside the method's limits."""
        amount = toMoney(amount)
        minAmount = toMoney(method.minAmount)
        maxAmount = toMoney(method.maxAmount)
        if minAmount and amount < minAmount:
            raise ValidationError(f"Minimum amount for {method.name} is {minAmount}")
        if maxAmount and amount > maxAmount:
            raise ValidationError(f"Maximum amount for {method.name} is {maxAmount}")

    @staticmethod
    def calculateFee(method: Optional[PaymentMethod], amount) -> Tuple[Decimal, Decimal]:
        """(fee, finalAmount) for a withdrawal through method."""
        amount = toMoney(amount)
        if method is None or not method.feePercent:
            return toMoney(0), amount
        fee = toMoney(amount * Decimal(str(method.feePercent)) / HUNDRED)
        return fee, amount - fee

    def resolveForRequest(self, name: Optional[str], type: str, amount) -> Optional[PaymentMethod]:
        """
        Registered method for a deposit/withdrawal request, validated.
        Unregistered names pass through unvalidated.
        """
        method = self.findByName(name, type)
        if method is None:
            return None
        if method.status != PaymentMethodStatus.ENABLED.value:
            raise ValidationError(f"Payment method {method.name} is disabled")
        self.validateAmount(method, amount)
        return method
