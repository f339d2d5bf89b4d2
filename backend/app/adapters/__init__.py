from app.adapters.audit_store import SqlAuditWriter
from app.adapters.catalog import CatalogReader

__all__ = ["SqlAuditWriter", "CatalogReader"]
