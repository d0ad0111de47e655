from .access_policy import PostgresAccessPolicyRepository
from .audit_event import PostgresAuditEventRepository
from .document import PostgresDocumentRepository
from .download_token import PostgresDownloadTokenRepository

__all__ = [
    "PostgresAccessPolicyRepository",
    "PostgresAuditEventRepository",
    "PostgresDocumentRepository",
    "PostgresDownloadTokenRepository",
]
