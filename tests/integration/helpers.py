"""Row builders for integration tests: insert what the auth provider and the
catalog admin would normally write."""

import uuid

from sqlalchemy import text

from src.mp_common.database import async_session_factory
from src.mp_gateway.auth.jwt_handler import create_access_token


async def create_profile(referral_code: str | None = None, is_admin: bool = False) -> dict[str, str]:
    """Insert a profile the way the auth provider would and return its identity."""
    uid = uuid.uuid4().hex[:12]
    user_id = f"user-{uid}"
    email = f"{uid}@example.com"
    async with async_session_factory() as session:
        await session.execute(
            text("""
                INSERT INTO profiles (user_id, email, referral_code, is_admin)
                VALUES (:user_id, :email, :code, :is_admin)
            """),
            {"user_id": user_id, "email": email, "code": referral_code, "is_admin": is_admin},
        )
        await session.commit()
    return {
        "user_id": user_id,
        "email": email,
        "token": create_access_token(user_id, email=email),
    }


async def create_product(price: int = 100000) -> str:
    async with async_session_factory() as session:
        product_id = (await session.execute(
            text("""
                INSERT INTO products (title, price, file_path)
                VALUES (:title, :price, 'products/test.pdf')
                RETURNING id
            """),
            {"title": f"Test product {uuid.uuid4().hex[:6]}", "price": price},
        )).scalar_one()
        await session.commit()
    return str(product_id)


async def plan_id_by_name(name: str) -> str:
    async with async_session_factory() as session:
        plan_id = (await session.execute(
            text("SELECT id FROM subscription_plans WHERE name = :name"), {"name": name}
        )).scalar_one()
    return str(plan_id)
