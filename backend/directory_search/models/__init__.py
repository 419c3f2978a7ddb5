from .service import Service
from .service_submission import ServiceSubmission

__all__ = ["Service", "ServiceSubmission"]
