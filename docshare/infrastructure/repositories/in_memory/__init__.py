from .access_policy import InMemoryAccessPolicyRepository
from .audit_event import InMemoryAuditEventRepository
from .document import InMemoryDocumentRepository
from .download_token import InMemoryDownloadTokenRepository

__all__ = [
    "InMemoryAccessPolicyRepository",
    "InMemoryAuditEventRepository",
    "InMemoryDocumentRepository",
    "InMemoryDownloadTokenRepository",
]
