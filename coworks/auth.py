import logging
from datetime import datetime

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import Admin, AdminRole, BlacklistedToken, Customer
from .security_utils import get_token_expiry, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


def is_token_blacklisted(db: Session, token: str) -> bool:
    return db.query(BlacklistedToken.id).filter(BlacklistedToken.token == token).first() is not None


def blacklist_token(db: Session, token: str, payload: dict) -> None:
    """Reject a token for the rest of its lifetime"""
    if is_token_blacklisted(db, token):
        return
    db.add(BlacklistedToken(token=token, expires_at=get_token_expiry(payload)))
    db.commit()
    logger.info(f"🔒 Token blacklisted until {get_token_expiry(payload).isoformat()}")


def decode_bearer_token(db: Session, token: str) -> dict:
    """Decode a bearer token, rejecting invalid, expired and blacklisted ones"""
    payload = verify_jwt_token(token)
    if not payload or "id" not in payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if is_token_blacklisted(db, token):
        logger.warning(f"⚠️ Blacklisted token presented for subject {payload.get('id')}")
        raise HTTPException(status_code=401, detail="Token has been revoked")
    return payload


async def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> dict:
    return decode_bearer_token(db, credentials.credentials)


async def get_current_customer(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Customer:
    """Resolve the customer behind a bearer token"""
    payload = decode_bearer_token(db, credentials.credentials)
    if payload.get("is_admin"):
        raise HTTPException(status_code=403, detail="Admin tokens cannot access customer resources")

    customer = db.query(Customer).filter(Customer.id == payload["id"]).first()
    if not customer:
        raise HTTPException(status_code=401, detail="Customer not found")
    return customer


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Admin:
    """Resolve the admin behind a bearer token"""
    payload = decode_bearer_token(db, credentials.credentials)
    if not payload.get("is_admin"):
        raise HTTPException(status_code=403, detail="Admin access required")

    admin = db.query(Admin).filter(Admin.id == payload["id"]).first()
    if not admin:
        raise HTTPException(status_code=401, detail="Admin not found")
    if not admin.is_active:
        raise HTTPException(status_code=403, detail="Admin account is deactivated")
    return admin


def require_roles(*roles: str):
    """
    Dependency factory restricting an endpoint to admin roles.
    super_admin passes every role check.

    Example:
        @router.post("", dependencies=[Depends(require_roles(AdminRole.SUPER_ADMIN))])
    """

    async def role_checker(admin: Admin = Depends(get_current_admin)) -> Admin:
        if admin.role != AdminRole.SUPER_ADMIN and admin.role not in roles:
            logger.warning(f"🚫 Admin {admin.id} with role {admin.role} denied (needs {roles})")
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return admin

    return role_checker


require_super_admin = require_roles(AdminRole.SUPER_ADMIN)


def ensure_branch_access(admin: Admin, branch_id) -> None:
    """Branch admins may only act on their own branch"""
    if admin.role == AdminRole.SUPER_ADMIN:
        return
    if branch_id is None or admin.branch_id != int(branch_id):
        raise HTTPException(status_code=403, detail="You do not have access to this branch")


def scoped_branch_id(admin: Admin, requested_branch_id=None):
    """Branch filter to apply for an admin listing"""
    if admin.role == AdminRole.SUPER_ADMIN:
        return requested_branch_id
    if requested_branch_id is not None and int(requested_branch_id) != admin.branch_id:
        raise HTTPException(status_code=403, detail="You do not have access to this branch")
    return admin.branch_id


def touch_last_login(db: Session, admin: Admin) -> None:
    admin.last_login = datetime.utcnow()
    db.commit()
