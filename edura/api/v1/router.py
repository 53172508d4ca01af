"""API v1 router aggregating all route modules."""

from fastapi import APIRouter

from edura.api.v1.routes import (
    assignments,
    attendance,
    auth,
    billings,
    classes,
    lectures,
    payroll,
    resources,
    users,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(classes.router)
api_router.include_router(attendance.router)
api_router.include_router(billings.router)
api_router.include_router(resources.router)
api_router.include_router(lectures.router)
api_router.include_router(assignments.router)
api_router.include_router(payroll.router)
