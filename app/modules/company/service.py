from datetime import date
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.common.exceptions import Forbidden, NotFound
from app.modules.company.models import Company

logger = logging.getLogger(__name__)


class CompanyService:
    """Guarda do tenant: empresa inativa ou com licença vencida não opera."""

    def __init__(self, db: Session):
        self.db = db

    def get_company(self, company_id: UUID) -> Company:
        company = self.db.query(Company).filter(Company.id == company_id).first()
        if not company:
            raise NotFound(f"Empresa com ID {company_id} não encontrada.")
        return company

    def assert_company_active(self, company_id: UUID, today: Optional[date] = None) -> Company:
        """
        Valida que a empresa pode operar.

        A licença vale até o fim do dia de vencimento, então só está expirada
        quando a data de vencimento é anterior a hoje.
        """
        company = self.get_company(company_id)
        today = today or date.today()

        if not company.is_active:
            logger.warning(f"Operação bloqueada: empresa {company_id} inativa")
            raise Forbidden(f"A empresa '{company.name}' está atualmente inativa. Operação não permitida.")

        if company.license_valid_until < today:
            logger.warning(f"Operação bloqueada: licença da empresa {company_id} expirada")
            raise Forbidden(
                f"A licença da empresa '{company.name}' expirou em "
                f"{company.license_valid_until.strftime('%d/%m/%Y')}. Operação não permitida."
            )

        return company
