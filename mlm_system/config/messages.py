# mlm_system/config/messages.py
"""
Notification templates. Rendered with format_map, unknown keys stay as-is.
"""


class SafeDict(dict):
    def __missing__(self, key):
        return '{' + key + '}'


MESSAGES = {
    # Deposits
    "deposit_created": "Your deposit #{depositId} for {cur}{amount} has been submitted and is pending review.",
    "deposit_status": "Your deposit #{depositId} for {cur}{amount} has been {status}.",

    # Commissions
    "commission_paid": "You have received a Level {level} commission of {cur}{amount} from {fromUser}.",
    "commission_held": "A commission of {cur}{amount} from {fromUser} has been held toward your {planName} upgrade.",
    "plan_upgraded": "Congratulations! Your held balance has upgraded you to {planName}.",

    # Withdrawals
    "withdrawal_created": "Your withdrawal request #{withdrawalId} for {cur}{amount} has been submitted.",
    "withdrawal_status": "Your withdrawal request #{withdrawalId} for {cur}{amount} is now {status}.",
    "withdrawal_paid": "Your withdrawal request #{withdrawalId} for {cur}{amount} has been paid.",
    "withdrawal_matched": "A deposit of {cur}{amount} from {fromUser} was matched to your withdrawal #{withdrawalId}. Remaining: {cur}{remaining}.",

    # Transfers
    "transfer_pending": "Your transfer request to {recipient} for {cur}{amount} is pending.",
    "transfer_sent": "Your transfer of {cur}{amount} to {recipient} has been approved.",
    "transfer_received": "You have received {cur}{amount} from {sender}.",
    "transfer_rejected": "Your transfer of {cur}{amount} to {recipient} was rejected and refunded.",

    # Plans
    "plan_purchased": "You have successfully purchased the {planName} for {cur}{amount}.",
    "plan_expired": "Your {planName} has expired.",

    # Users
    "new_referral": "{username} has joined your team as a direct referral.",
    "manual_adjustment": "Your wallet was adjusted by {cur}{amount}: {description}",
    "status_changed": "Your account status is now {status}.",
}


def render(key: str, **variables) -> str:
    template = MESSAGES.get(key, key)
    return template.format_map(SafeDict(variables))
