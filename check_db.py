import asyncio
from motor.motor_asyncio import AsyncIOMotorClient
from app.config import settings

COLLECTIONS = ["stores", "users", "attendance", "leave_requests", "rokar", "other_expenses", "salary_requests"]


async def check():
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    db = client[settings.MONGODB_DB_NAME]
    counts = []
    for name in COLLECTIONS:
        counts.append(f"{name}={await db[name].count_documents({})}")
    print(f"COUNT_STATUS: {', '.join(counts)}")

if __name__ == "__main__":
    asyncio.run(check())
