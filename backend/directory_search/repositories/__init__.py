from .service_repository import ServiceRepository
from .service_submission_repository import ServiceSubmissionRepository

__all__ = ["ServiceRepository", "ServiceSubmissionRepository"]
