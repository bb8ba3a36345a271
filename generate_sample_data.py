import asyncio
import random
from datetime import date, timedelta
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient
from app.config import settings
from app.core.dates import iso
from app.core.errors import DomainError
from app.core.ledger import CashBreakdown, LedgerForm, Payments
from app.models.store import Store
from app.models.staff import StaffProfile, StaffRole
from app.models.attendance import AttendanceRecord
from app.models.leave import LeaveRequest
from app.models.rokar import RokarEntry
from app.models.expense import OtherExpense, SalaryRequest
from app.services import rokar as rokar_service

STORE_ID = "S1"


async def create_sample_data():
    """Populate database with a store, its staff, attendance and a two-day Rokar chain"""
    print("🚀 Starting Sample Data Generation...")

    # Initialize Beanie
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    await init_beanie(
        database=client[settings.MONGODB_DB_NAME],
        document_models=[Store, StaffProfile, AttendanceRecord, LeaveRequest, RokarEntry, OtherExpense, SalaryRequest]
    )

    store = await Store.get(STORE_ID)
    if store is None:
        store = Store(
            id=STORE_ID,
            brand="Saree House",
            name="Main Bazaar",
            city="Jaipur",
            shift_start="10:00",
            late_grace_min=10,
            late_penalty=50,
        )
        await store.insert()
        print(f"✅ Created Store: {store.name} ({STORE_ID})")

    names = ["Asha Verma", "Ravi Kumar", "Neha Singh", "Imran Khan"]
    staff = []
    for i, name in enumerate(names):
        email = f"{name.split()[0].lower()}@{STORE_ID.lower()}.example.com"
        existing = await StaffProfile.find_one({"email": email})
        if existing:
            print(f"⏩ {email} already exists, skipping...")
            staff.append(existing)
            continue
        member = StaffProfile(
            email=email,
            name=name,
            role=StaffRole.MANAGER if i == 0 else StaffRole.STAFF,
            assigned_store=STORE_ID,
            salary=random.choice([12000, 15000, 18000]),
            leave_days=2,
            lunch_allowance=30,
            extra_sunday_allowance=200,
        )
        await member.insert()
        staff.append(member)
        print(f"✅ Created Staff: {name} ({email})")

    # Attendance for the last 20 days
    print("📅 Generating Attendance History (20 Days)...")
    today = date.today()
    for member in staff:
        for d in range(20):
            day = iso(today - timedelta(days=d))
            if await AttendanceRecord.find_one({"staff_email": member.email, "date": day}):
                continue
            present = random.random() > 0.1
            check_in = f"{random.choice([9, 10])}:{random.randint(0, 59):02d}" if present else None
            await AttendanceRecord(
                staff_email=member.email,
                store_id=STORE_ID,
                date=day,
                present="YES" if present else "NO",
                check_in=check_in,
                answers={
                    "yesterday_sale": random.randint(5000, 20000),
                    "today_target": 15000,
                    "google_reviews_done": random.randint(0, 3),
                    "los_updates_done": random.randint(0, 2),
                    "uniform": random.random() > 0.2,
                    "in_shoe": random.random() > 0.3,
                } if present else None,
            ).insert()

    # A pending leave request that will cost a fine
    await LeaveRequest(
        staff_email=staff[-1].email,
        store_id=STORE_ID,
        from_date=iso(today + timedelta(days=3)),
        to_date=iso(today + timedelta(days=4)),
        status="PENDING",
        reason="Family function",
    ).insert()

    # Two-day ledger chain; the second day's opening comes from the first day's closing
    print("📒 Generating Rokar chain...")
    first_day = iso(today - timedelta(days=2))
    second_day = iso(today - timedelta(days=1))
    try:
        await rokar_service.set_opening_balance(STORE_ID, first_day, 1000, actor="seed")
    except DomainError as exc:
        print(f"⏩ Opening balance for {first_day} not set: {exc.message}")

    forms = [
        LedgerForm(
            store_id=STORE_ID,
            date=first_day,
            computer_sale=5000,
            payments=Payments(paytm=2000),
            expense_breakup={"WATER": 50},
            cash_breakdown=CashBreakdown(rs500=7, rs100=4, rs50=1),
        ),
        LedgerForm(
            store_id=STORE_ID,
            date=second_day,
            computer_sale=3000,
            payments=Payments(paytm=1000),
            expense_breakup={"TEA": 30},
            cash_breakdown=CashBreakdown(rs500=11, rs100=4, rs20=1),
        ),
    ]
    for form in forms:
        preview = await rokar_service.preview_entry(form)
        if not preview.ok:
            print(f"⚠️ {preview.key}: {preview.message}")
            continue
        result = await rokar_service.save_entry(form, preview.totals.closing_balance, actor="seed")
        if result.ok:
            print(f"✅ Saved Rokar {result.key}: closing {result.totals.closing_balance:.2f}")
        else:
            print(f"⚠️ {result.key}: {result.message}")

    print("✨ Sample Data Generation Complete!")

if __name__ == "__main__":
    asyncio.run(create_sample_data())
