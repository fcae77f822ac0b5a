from app.core.database import Base, SessionLocal, engine
from app.core.dependencies import get_sheets_client
from app.models.transaction import Account, TransactionStatus, TransactionType
from app.models.user import User, UserRole
from app.services.audit_log_service import AuditLogService
from app.services.cash_in_hand_service import CashInHandService
from app.services.transaction_service import TransactionService
from app.services.user_service import create_user, get_user_by_email

from faker import Faker
import random
from datetime import date, timedelta

fake = Faker()
DEFAULT_PASSWORD = "changeme123"

SEED_USERS = [
    ("superadmin@example.com", "Super Admin", UserRole.super_admin),
    ("treasurer@example.com", fake.name(), UserRole.admin),
    ("member@example.com", fake.name(), UserRole.basic_user),
]

Base.metadata.create_all(bind=engine)
db = SessionLocal()

try:
    print("🔄 Creating users...")
    users = []
    for email, name, role in SEED_USERS:
        user = get_user_by_email(db, email)
        if not user:
            user = create_user(db, email=email, password=DEFAULT_PASSWORD, name=name, role=role)
        users.append(user)
    print(f"✅ {len(users)} users ready (password: {DEFAULT_PASSWORD})")

    sheets = get_sheets_client()
    transactions = TransactionService(sheets, AuditLogService(sheets))
    cash = CashInHandService(sheets)

    print("🔄 Appending transactions...")
    admin: User = users[1]
    created = []
    for _ in range(random.randint(15, 25)):
        author = random.choice(users)
        tx_type = random.choice(list(TransactionType))
        record = transactions.create_record(
            account=Account.miyf.value,
            record_date=date.today() - timedelta(days=random.randint(0, 180)),
            type=tx_type,
            who=fake.name(),
            amount=round(random.uniform(10, 2000), 2),
            description=fake.sentence(nb_words=4),
            created_by=author.display_name,
            remark=fake.word() if random.random() < 0.3 else None,
        )
        created.append(record)
    print(f"✅ Appended {len(created)} transactions")

    approved = random.sample(created, k=len(created) // 2)
    for record in approved:
        transactions.update_status(record.key, TransactionStatus.approved, user=admin)
    print(f"✅ Approved {len(approved)} transactions")

    cash.add_adjustment(round(random.uniform(500, 3000), 2), created_by=admin.display_name,
                        description="Opening balance")
    balance, _ = cash.balance()
    print(f"✅ Cash in hand: {balance}")

except Exception as e:
    db.rollback()
    print(f"❌ Error occurred: {e}")
    raise
finally:
    db.close()
