"""Lecture routes."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from edura.core.config import settings
from edura.core.deps import CurrentUser, DbSession, Storage, Teacher
from edura.schemas.coursework import LectureCreate, LectureResponse
from edura.services import classroom as classroom_service
from edura.services import coursework as coursework_service

router = APIRouter(tags=["Lectures"])


@router.post(
    "/lectures/upload",
    response_model=LectureResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_lecture(
    db: DbSession,
    current_user: Teacher,
    storage: Storage,
    file: UploadFile = File(...),
    class_id: UUID = Form(...),
    title: str = Form(..., min_length=1, max_length=200),
    lecture_date: datetime = Form(...),
    description: str | None = Form(None),
):
    """
    Upload a lecture file to one of the teacher's classes.

    - PDF or image (JPEG, PNG, GIF, WEBP)
    - Maximum 10MB
    """
    if file.content_type not in settings.ALLOWED_UPLOAD_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only PDFs and images are allowed.",
        )

    content = await file.read()

    if len(content) > settings.MAX_LECTURE_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size: {settings.MAX_LECTURE_FILE_SIZE // (1024 * 1024)}MB",
        )

    classroom = await classroom_service.get_teacher_class(db, class_id, current_user.id)
    if not classroom:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Class not found or access denied",
        )

    return await coursework_service.upload_lecture(
        db,
        storage,
        classroom,
        file_name=file.filename or "lecture",
        content=content,
        content_type=file.content_type,
        title=title,
        description=description,
        lecture_date=lecture_date,
    )


@router.post("/lectures", response_model=LectureResponse, status_code=status.HTTP_201_CREATED)
async def create_lecture(
    lecture_data: LectureCreate,
    db: DbSession,
    current_user: Teacher,
):
    """Add a lecture that links to a hosted file or YouTube video."""
    classroom = await classroom_service.get_teacher_class(db, lecture_data.class_id, current_user.id)
    if not classroom:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Class not found or access denied",
        )
    return await coursework_service.create_lecture(db, lecture_data)


@router.get("/classes/{class_id}/lectures", response_model=list[LectureResponse])
async def list_class_lectures(
    class_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
):
    """Lectures of a class, oldest first."""
    classroom = await classroom_service.get_class_by_id(db, class_id)
    if not classroom or not await classroom_service.can_view_class(db, current_user, classroom):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    return await coursework_service.get_class_lectures(db, class_id)


@router.delete("/lectures/{lecture_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lecture(
    lecture_id: UUID,
    db: DbSession,
    current_user: Teacher,
) -> None:
    """Delete a lecture of one of the teacher's classes."""
    lecture = await coursework_service.get_teacher_lecture(db, lecture_id, current_user.id)
    if not lecture:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lecture not found",
        )
    await coursework_service.delete_lecture(db, lecture)
