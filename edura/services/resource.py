"""Resource service - files managers share with their teachers."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edura.core.storage import BlobStorage
from edura.models.resource import Resource
from edura.models.user import User

logger = logging.getLogger(__name__)


async def create_resource(
    db: AsyncSession,
    storage: BlobStorage,
    uploader: User,
    file_name: str,
    content: bytes,
    content_type: str | None,
    description: str | None = None,
) -> Resource:
    """Store the blob, then record it."""
    url = storage.put(file_name, content, content_type)

    resource = Resource(
        file_name=file_name,
        file_url=url,
        file_size=len(content),
        file_type=content_type,
        description=description or None,
        uploaded_by=uploader.id,
    )
    db.add(resource)
    await db.commit()
    await db.refresh(resource)
    return resource


async def get_resources_by_uploader(db: AsyncSession, uploader_id: UUID) -> list[Resource]:
    """Resources uploaded by a user, newest first."""
    result = await db.execute(
        select(Resource)
        .where(Resource.uploaded_by == uploader_id)
        .order_by(Resource.created_at.desc())
    )
    return list(result.scalars().all())


async def get_owned_resource(
    db: AsyncSession, resource_id: UUID, uploader_id: UUID
) -> Resource | None:
    result = await db.execute(
        select(Resource).where(
            Resource.id == resource_id,
            Resource.uploaded_by == uploader_id,
        )
    )
    return result.scalar_one_or_none()


async def delete_resource(db: AsyncSession, storage: BlobStorage, resource: Resource) -> None:
    """Delete the blob and the record; the record goes even if the blob delete fails."""
    try:
        storage.delete(resource.file_url)
    except (OSError, ValueError):
        logger.warning("Could not delete blob %s", resource.file_url, exc_info=True)

    await db.delete(resource)
    await db.commit()
