"""Shared resource routes."""

from uuid import UUID

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from edura.core.config import settings
from edura.core.deps import DbSession, Manager, Storage, Teacher
from edura.schemas.resource import ResourceResponse
from edura.services import resource as resource_service

router = APIRouter(prefix="/resources", tags=["Resources"])


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def upload_resource(
    db: DbSession,
    current_user: Manager,
    storage: Storage,
    file: UploadFile = File(...),
    description: str | None = Form(None),
) -> ResourceResponse:
    """
    Upload a file to share with the center's teachers.

    - Any file type
    - Maximum 50MB
    """
    content = await file.read()

    if len(content) > settings.MAX_RESOURCE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size: {settings.MAX_RESOURCE_SIZE // (1024 * 1024)}MB",
        )

    resource = await resource_service.create_resource(
        db,
        storage,
        current_user,
        file_name=file.filename or "file",
        content=content,
        content_type=file.content_type,
        description=description,
    )
    return ResourceResponse.model_validate(resource)


@router.get("", response_model=list[ResourceResponse])
async def list_my_resources(
    db: DbSession,
    current_user: Manager,
):
    """Resources uploaded by the current manager, newest first."""
    return await resource_service.get_resources_by_uploader(db, current_user.id)


@router.get("/teacher", response_model=list[ResourceResponse])
async def list_teacher_resources(
    db: DbSession,
    current_user: Teacher,
):
    """Resources shared by the teacher's manager."""
    if current_user.manager_id is None:
        return []
    return await resource_service.get_resources_by_uploader(db, current_user.manager_id)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: UUID,
    db: DbSession,
    current_user: Manager,
    storage: Storage,
) -> None:
    """Delete one of the manager's resources."""
    resource = await resource_service.get_owned_resource(db, resource_id, current_user.id)
    if not resource:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resource not found",
        )
    await resource_service.delete_resource(db, storage, resource)
