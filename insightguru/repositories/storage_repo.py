from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from insightguru.models.storage import StoredItem


async def get_item(session: AsyncSession, key: str) -> str | None:
    result = await session.execute(select(StoredItem.value).where(StoredItem.key == key))
    return result.scalar_one_or_none()


async def set_item(session: AsyncSession, key: str, value: str) -> None:
    await session.merge(StoredItem(key=key, value=value))
    await session.commit()


async def remove_item(session: AsyncSession, key: str) -> None:
    await session.execute(delete(StoredItem).where(StoredItem.key == key))
    await session.commit()

