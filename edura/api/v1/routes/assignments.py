"""Assignment and submission routes."""

from uuid import UUID

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from edura.core.config import settings
from edura.core.deps import CurrentUser, DbSession, Storage, Student, Teacher
from edura.schemas.coursework import (
    AssignmentCreate,
    AssignmentResponse,
    SubmissionCreate,
    SubmissionGrade,
    SubmissionResponse,
    SubmissionUploadResponse,
    SubmissionWithStudent,
    UploadedFile,
)
from edura.services import classroom as classroom_service
from edura.services import coursework as coursework_service

router = APIRouter(tags=["Assignments"])

MB = 1024 * 1024


@router.post(
    "/classes/{class_id}/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assignment(
    class_id: UUID,
    assignment_data: AssignmentCreate,
    db: DbSession,
    current_user: Teacher,
):
    """Create a quiz or written assignment."""
    classroom = await classroom_service.get_teacher_class(db, class_id, current_user.id)
    if not classroom:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    return await coursework_service.create_assignment(db, classroom, assignment_data)


@router.get("/classes/{class_id}/assignments", response_model=list[AssignmentResponse])
async def list_assignments(
    class_id: UUID,
    db: DbSession,
    current_user: CurrentUser,
):
    """Assignments of a class, newest first."""
    classroom = await classroom_service.get_class_by_id(db, class_id)
    if not classroom or not await classroom_service.can_view_class(db, current_user, classroom):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    return await coursework_service.get_class_assignments(db, class_id)


@router.post("/submissions/upload", response_model=SubmissionUploadResponse)
async def upload_submission_files(
    current_user: Student,
    storage: Storage,
    files: list[UploadFile] = File(...),
) -> SubmissionUploadResponse:
    """
    Upload attachments for a submission.

    - 1 to 5 files, PDF or image
    - Maximum 10MB per file, 30MB in total

    Returns the stored files; attach them to the submission content.
    """
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No files provided",
        )

    if len(files) > settings.MAX_SUBMISSION_FILES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum {settings.MAX_SUBMISSION_FILES} files allowed",
        )

    payloads = []
    total_size = 0
    for file in files:
        if file.content_type not in settings.ALLOWED_UPLOAD_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid file type for {file.filename}. Only PDFs and images are allowed.",
            )

        content = await file.read()
        if len(content) > settings.MAX_SUBMISSION_FILE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File {file.filename} exceeds {settings.MAX_SUBMISSION_FILE_SIZE // MB}MB limit",
            )

        total_size += len(content)
        payloads.append((file.filename or "file", content, file.content_type))

    if total_size > settings.MAX_SUBMISSION_TOTAL_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Total file size exceeds {settings.MAX_SUBMISSION_TOTAL_SIZE // MB}MB limit",
        )

    stored = coursework_service.store_submission_files(storage, payloads)
    return SubmissionUploadResponse(files=[UploadedFile(**f) for f in stored])


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_assignment(
    assignment_id: UUID,
    submission_data: SubmissionCreate,
    db: DbSession,
    current_user: Student,
):
    """Submit answers once; quizzes are graded immediately."""
    assignment = await coursework_service.get_student_assignment(
        db, assignment_id, current_user.id
    )
    if not assignment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assignment not found",
        )

    existing = await coursework_service.get_submission(db, assignment_id, current_user.id)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already submitted this assignment",
        )

    return await coursework_service.submit_assignment(
        db, assignment, current_user, submission_data.submission_content
    )


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionWithStudent],
)
async def list_submissions(
    assignment_id: UUID,
    db: DbSession,
    current_user: Teacher,
):
    """Submissions to one of the teacher's assignments."""
    assignment = await coursework_service.get_teacher_assignment(
        db, assignment_id, current_user.id
    )
    if not assignment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assignment not found",
        )

    rows = await coursework_service.get_assignment_submissions(db, assignment_id)
    return [
        SubmissionWithStudent(
            **SubmissionResponse.model_validate(submission).model_dump(),
            student_name=student.name,
            student_email=student.email,
        )
        for submission, student in rows
    ]


@router.patch("/submissions/{submission_id}/grade", response_model=SubmissionResponse)
async def grade_submission(
    submission_id: UUID,
    grade_data: SubmissionGrade,
    db: DbSession,
    current_user: Teacher,
):
    """Grade a submission to one of the teacher's assignments (0-100)."""
    submission = await coursework_service.get_teacher_submission(
        db, submission_id, current_user.id
    )
    if not submission:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Submission not found",
        )

    return await coursework_service.grade_submission(
        db, submission, grade_data.grade, grade_data.feedback
    )
