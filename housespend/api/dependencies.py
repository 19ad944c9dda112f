"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from housespend.config import get_settings
from housespend.database import get_db
from housespend.models.user import User
from housespend.services.analysis_client import ReceiptAnalyzer
from housespend.services.analytics_service import AnalyticsService
from housespend.services.auth import decode_access_token
from housespend.services.encryption import EncryptionService
from housespend.services.receipt_service import ReceiptService
from housespend.services.secret_store import SecretStore
from housespend.services.stock_service import StockService

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise _unauthorized("Invalid authentication credentials")

    user = db.query(User).filter(User.id == int(payload["sub"])).first()
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_current_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Require an administrator."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return current_user


def get_encryption_service() -> EncryptionService:
    return EncryptionService(get_settings().encryption_key)


def get_secret_store(
    db: Annotated[Session, Depends(get_db)],
    encryption: Annotated[EncryptionService, Depends(get_encryption_service)],
) -> SecretStore:
    return SecretStore(db, encryption)


def get_receipt_analyzer(
    secret_store: Annotated[SecretStore, Depends(get_secret_store)],
) -> ReceiptAnalyzer:
    """Get receipt analyzer reading its key from the secret store."""
    return ReceiptAnalyzer(secret_store)


def get_stock_service(
    db: Annotated[Session, Depends(get_db)],
) -> StockService:
    return StockService(db)


def get_receipt_service(
    db: Annotated[Session, Depends(get_db)],
    analyzer: Annotated[ReceiptAnalyzer, Depends(get_receipt_analyzer)],
    stock_service: Annotated[StockService, Depends(get_stock_service)],
) -> ReceiptService:
    """Get receipt service with dependencies."""
    return ReceiptService(db, analyzer=analyzer, stock_service=stock_service)


def get_analytics_service(
    db: Annotated[Session, Depends(get_db)],
) -> AnalyticsService:
    return AnalyticsService(db)
