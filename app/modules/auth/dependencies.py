"""
Dependências de autenticação para FastAPI.
"""
from uuid import UUID
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt

from app.common.exceptions import Forbidden, InvalidArgument
from app.database.database import get_db
from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import AuthContext
from app.modules.auth.utils import decode_token
from app.modules.company.service import CompanyService

# Security scheme
security = HTTPBearer()

class AuthDependencies:
    """Dependências de autenticação reutilizáveis."""

    @staticmethod
    def get_auth_context(
        request: Request,
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> AuthContext:
        """
        Monta o contexto (usuário, empresa, papel) a partir do token.

        ADMIN_GLOBAL não tem empresa própria e escolhe a empresa alvo pelo
        header X-Company-ID; os demais ficam presos à empresa do cadastro.
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não foi possível validar as credenciais",
            headers={"WWW-Authenticate": "Bearer"},
        )

        try:
            payload = decode_token(credentials.credentials)
            user_id = payload.get("sub")
            if user_id is None:
                raise credentials_exception
            user_id = UUID(user_id)
        except (jwt.PyJWTError, ValueError):
            raise credentials_exception

        user = db.query(User).filter(User.id == user_id).first()
        if user is None or not user.is_active:
            raise credentials_exception

        if user.role == UserRole.ADMIN_GLOBAL:
            company_header = request.headers.get("X-Company-ID")
            company_id = None
            if company_header:
                try:
                    company_id = UUID(company_header)
                except ValueError:
                    raise InvalidArgument("ID de empresa inválido.")
        else:
            token_company = payload.get("company_id")
            if user.company_id is None:
                raise Forbidden("Usuário não está associado a uma empresa.")
            if token_company and token_company != str(user.company_id):
                raise Forbidden("Token não corresponde à empresa do usuário.")
            company_id = user.company_id

        return AuthContext(user_id=user.id, company_id=company_id, role=user.role)

    @staticmethod
    def require_role(allowed_roles: list[UserRole]):
        """
        Exige um dos papéis informados e uma empresa ativa com licença válida.
        ADMIN_GLOBAL passa pela checagem de empresa sem validar a licença.
        """
        def role_checker(
            auth_context: AuthContext = Depends(AuthDependencies.get_auth_context),
            db: Session = Depends(get_db)
        ) -> AuthContext:
            if auth_context.role not in allowed_roles:
                raise Forbidden(
                    f"Requer um destes papéis: {', '.join(r.value for r in allowed_roles)}"
                )

            if auth_context.company_id is None:
                raise InvalidArgument("É necessário selecionar uma empresa (header X-Company-ID).")

            if not auth_context.is_global_admin:
                CompanyService(db).assert_company_active(auth_context.company_id)

            return auth_context
        return role_checker

# Instâncias de dependências
get_auth_context = AuthDependencies.get_auth_context
require_role = AuthDependencies.require_role
