from fastapi import BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..database import get_db
from ..models.user import User
from ..services.audit import AuditSink, BackgroundAuditSink, DatabaseAuditSink, RequestMetadata
from ..services.quote_composer import QuoteComposer
from ..services.quote_lifecycle import QuoteLifecycle
from ..services.quote_sharing import QuoteSharingGateway
from ..utils.auth import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception
    try:
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if subject is None:
            raise credentials_exception
        user_id = int(subject)
    except (JWTError, ValueError):
        raise credentials_exception
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def get_request_metadata(request: Request) -> RequestMetadata:
    return RequestMetadata(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_audit_sink(background_tasks: BackgroundTasks) -> AuditSink:
    """Database-backed sink whose writes run after the response is sent."""
    return BackgroundAuditSink(background_tasks, DatabaseAuditSink())


def get_quote_lifecycle() -> QuoteLifecycle:
    return QuoteLifecycle.from_settings()


def get_quote_composer(
    db: Session = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    lifecycle: QuoteLifecycle = Depends(get_quote_lifecycle),
    meta: RequestMetadata = Depends(get_request_metadata),
) -> QuoteComposer:
    return QuoteComposer(db, audit=audit, lifecycle=lifecycle, request_metadata=meta)


def get_sharing_gateway(
    db: Session = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    lifecycle: QuoteLifecycle = Depends(get_quote_lifecycle),
    meta: RequestMetadata = Depends(get_request_metadata),
) -> QuoteSharingGateway:
    return QuoteSharingGateway(db, audit=audit, lifecycle=lifecycle, request_metadata=meta)
