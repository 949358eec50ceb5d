"""Store layer: typed records and the SQLAlchemy-backed compliance store."""

from compliance_tracker.store.store import ComplianceStore

__all__ = ["ComplianceStore"]
