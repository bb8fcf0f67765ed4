import os
from decimal import Decimal
from dotenv import load_dotenv

# Загрузка .env
load_dotenv()

# База данных
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///portal.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

# Логирование
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Комиссии
COMMISSION_MAX_DEPTH = int(os.getenv("COMMISSION_MAX_DEPTH", "10"))

# Значения по умолчанию для SystemSettings (используются при первом чтении)
DEFAULT_CURRENCY_SYMBOL = os.getenv("DEFAULT_CURRENCY_SYMBOL", "$")
SITE_WIDE_MIN_WITHDRAWAL = Decimal(os.getenv("SITE_WIDE_MIN_WITHDRAWAL", "10"))
USER_TRANSFER_ENABLED = os.getenv("USER_TRANSFER_ENABLED", "true").lower() in ("1", "true", "yes")
RESTRICT_WITHDRAWAL_AMOUNT = os.getenv("RESTRICT_WITHDRAWAL_AMOUNT", "false").lower() in ("1", "true", "yes")
ALLOW_PLAN_REPURCHASE = os.getenv("ALLOW_PLAN_REPURCHASE", "true").lower() in ("1", "true", "yes")

# Дерево
TREE_MAX_DEPTH = int(os.getenv("TREE_MAX_DEPTH", "50"))
