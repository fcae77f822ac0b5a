# app/models/__init__.py
from .user import User, UserRole, UserStatus
from .transaction import FinancialRecord, TransactionType, TransactionStatus, Account
from .receipt import Receipt
from .cash_in_hand import CashInHandRecord, CashInHandType
from .audit_log import AuditLogEntry
