# users/services.py
import logging
from decimal import Decimal

from django.db import transaction

from .models import User, WalletTransaction

logger = logging.getLogger('localworker')


# ==============================
# Wallet
# ==============================

def _apply_wallet_change(user_id, amount, txn_type, description, booking=None):
    amount = Decimal(str(amount))
    if amount <= 0:
        return {"error": ("invalid_amount", "Amount must be greater than zero")}

    with transaction.atomic():
        # row lock so concurrent debits cannot overdraw
        user = User.objects.select_for_update().get(pk=user_id)

        if txn_type == 'debit':
            if user.wallet < amount:
                return {"error": (
                    "insufficient_balance",
                    f"Insufficient wallet balance. Available: {user.wallet}, required: {amount}"
                )}
            user.wallet -= amount
        else:
            user.wallet += amount

        user.save(update_fields=['wallet', 'updated_at'])
        entry = WalletTransaction.objects.create(
            user=user,
            amount=amount,
            type=txn_type,
            description=description,
            booking=booking,
            balance_after=user.wallet,
        )

    logger.info(f"Wallet {txn_type} of {amount} for user {user_id}, balance {user.wallet}")
    return {"ok": {"balance": user.wallet, "transaction": entry}}


def debit_wallet(user, amount, description='', booking=None):
    return _apply_wallet_change(user.pk, amount, 'debit', description, booking)


def credit_wallet(user, amount, description='', booking=None):
    return _apply_wallet_change(user.pk, amount, 'credit', description, booking)
