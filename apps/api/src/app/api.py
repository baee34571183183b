from fastapi import APIRouter

from app.modules.applications import admin_router as admin_applications_router
from app.modules.applications import router as applications_router
from app.modules.auth import router as auth_router
from app.modules.certificates import admin_router as admin_certificates_router
from app.modules.certificates import router as certificates_router
from app.modules.cohorts import router as cohorts_router
from app.modules.documents import router as documents_router
from app.modules.fees import admin_router as admin_fees_router
from app.modules.fees import router as fees_router
from app.modules.payments import router as payments_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(cohorts_router, prefix="/cohorts", tags=["Cohorts"])
api_router.include_router(fees_router, prefix="/fees", tags=["Fees"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])
api_router.include_router(documents_router, prefix="/applications", tags=["Documents"])
api_router.include_router(payments_router, prefix="/payments", tags=["Payments"])
api_router.include_router(certificates_router, prefix="/certificates", tags=["Certificates"])

api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)
api_router.include_router(admin_fees_router, prefix="/admin/fees", tags=["Admin - Fees"])
api_router.include_router(
    admin_certificates_router,
    prefix="/admin/certificates",
    tags=["Admin - Certificates"],
)
