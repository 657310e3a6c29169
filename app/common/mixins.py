"""
Mixins comuns para os modelos multi-tenant
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TenantMixin:
    """Adiciona company_id: toda consulta de negócio filtra por empresa"""

    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)


class TimestampMixin:
    """Mixin para modelos que precisam de rastreamento de datas"""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
