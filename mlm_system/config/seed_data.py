# mlm_system/config/seed_data.py
"""
Demo catalog for `main.py seed`. Upgrade targets are referenced by plan name
and resolved to ids after all plans exist.
"""

DEMO_PLANS = [
    {
        "name": "Bronze Plan",
        "price": 50,
        "durationDays": 30,
        "minWithdraw": 10,
        "description": "A great starting plan.",
        "status": "Active",
        "directReferralLimit": 10,
        "directCommissions": [{"type": "percentage", "value": 10 if i < 5 else 8} for i in range(10)],
        "indirectCommissions": [
            {"type": "percentage", "value": 5},
            {"type": "percentage", "value": 2},
        ],
        "commissionDeductions": {
            "afterMaxPayout": {"type": "fixed", "value": 10},
            "afterMaxEarning": {"type": "fixed", "value": 10},
            "afterMaxDirect": {"type": "fixed", "value": 5},
        },
        "upgradeTo": "Silver Plan",
        "holdPosition": {"enabled": True, "slots": [9, 10]},
    },
    {
        "name": "Silver Plan",
        "price": 100,
        "durationDays": 60,
        "minWithdraw": 25,
        "description": "Balanced plan for steady growth.",
        "status": "Active",
        "directReferralLimit": 20,
        "directCommissions": [{"type": "fixed", "value": 25} for _ in range(20)],
        "indirectCommissions": [
            {"type": "fixed", "value": 10},
            {"type": "fixed", "value": 5},
            {"type": "fixed", "value": 2},
        ],
        "commissionDeductions": {
            "afterMaxPayout": {"type": "percentage", "value": 5},
            "afterMaxEarning": {"type": "percentage", "value": 5},
            "afterMaxDirect": {"type": "percentage", "value": 2},
        },
        "upgradeTo": "Gold Plan",
        "holdPosition": {"enabled": False, "slots": []},
    },
    {
        "name": "Gold Plan",
        "price": 200,
        "durationDays": 0,
        "minWithdraw": 100,
        "description": "Premium plan for maximum returns. Never expires.",
        "status": "Active",
        "directReferralLimit": 0,
        "directCommissions": [{"type": "percentage", "value": 15}],
        "indirectCommissions": [
            {"type": "percentage", "value": 7},
            {"type": "percentage", "value": 3},
            {"type": "percentage", "value": 1},
            {"type": "percentage", "value": 0.5},
        ],
        "upgradeTo": None,
        "holdPosition": {"enabled": False, "slots": []},
    },
    {
        "name": "Starter (Old)",
        "price": 25,
        "durationDays": 15,
        "minWithdraw": 5,
        "description": "This plan is no longer available.",
        "status": "Disabled",
        "directReferralLimit": 5,
        "directCommissions": [{"type": "fixed", "value": 5} for _ in range(5)],
        "indirectCommissions": [],
        "upgradeTo": None,
        "holdPosition": {"enabled": False, "slots": []},
    },
]

DEMO_PAYMENT_METHODS = [
    {"name": "Easypaisa", "type": "Deposit", "accountTitle": "John Doe", "accountNumber": "03001234567",
     "instructions": "Send to this account and upload receipt.", "minAmount": 10, "maxAmount": 1000,
     "feePercent": 0, "status": "Enabled"},
    {"name": "JazzCash", "type": "Deposit", "accountTitle": "Jane Smith", "accountNumber": "03017654321",
     "instructions": "Send and mention your username in reference.", "minAmount": 10, "maxAmount": 1000,
     "feePercent": 0, "status": "Enabled"},
    {"name": "USDT (TRC20)", "type": "Withdrawal", "accountTitle": "Company Wallet", "accountNumber": "TXYZ...",
     "instructions": "Withdrawals are processed within 24 hours.", "minAmount": 50, "maxAmount": 5000,
     "feePercent": 2, "status": "Enabled"},
    {"name": "Bank Transfer", "type": "Withdrawal", "accountTitle": "N/A", "accountNumber": "N/A",
     "instructions": "Provide your bank details in the form.", "minAmount": 100, "maxAmount": 10000,
     "feePercent": 5, "status": "Disabled"},
]
