import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Request
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import AuthenticationError, ForbiddenError, NotFoundError
from models.notes import Note
from models.user import UserRole
from models.workspace import Workspace

TOKEN_HEADER_NAMES = ["authorization", "x-auth-token"]
logger = logging.getLogger("notehub.security")


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    company_id: int
    role: UserRole

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER


def _mask_user_id(user_id) -> str:
    value = str(user_id or "").strip()
    if not value:
        return "-"
    if len(value) <= 8:
        return value
    return f"{value[:4]}...{value[-4:]}"


def _audit_auth_failure(request: Request | None, reason: str, *, claimed_user_id=None) -> None:
    if not request:
        logger.warning("AUTH_DENY reason=%s", reason)
        return
    path = getattr(getattr(request, "url", None), "path", "-")
    method = getattr(request, "method", "-")
    client = getattr(request, "client", None)
    ip = getattr(client, "host", "-") if client else "-"
    logger.warning(
        "AUTH_DENY reason=%s method=%s path=%s ip=%s claimed=%s",
        reason,
        method,
        path,
        ip,
        _mask_user_id(claimed_user_id),
    )


def _extract_auth_token(request: Request) -> str | None:
    headers = getattr(request, "headers", None)
    if not headers:
        return None
    for name in TOKEN_HEADER_NAMES:
        value = headers.get(name)
        if not value:
            continue
        raw = value.strip()
        if not raw:
            continue
        if name == "authorization":
            if not raw.lower().startswith("bearer "):
                # 仅支持 Bearer 格式
                continue
            raw = raw.split(" ", 1)[1].strip()
        if raw:
            return raw
    return None


def create_access_token(
    *,
    user_id: int,
    email: str,
    company_id: int,
    role: UserRole | str,
    expires_minutes: int | None = None,
) -> str:
    minutes = settings.AUTH_TOKEN_TTL_MINUTES if expires_minutes is None else expires_minutes
    role_value = role.value if isinstance(role, UserRole) else str(role)
    payload = {
        "sub": str(user_id),
        "userId": user_id,
        "email": email,
        "companyId": company_id,
        "role": role_value,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def decode_access_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, settings.AUTH_JWT_SECRET, algorithms=[settings.AUTH_JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc
    user_id = payload.get("userId") or payload.get("sub")
    company_id = payload.get("companyId")
    if not user_id or company_id is None:
        raise AuthenticationError("Token is missing identity claims")
    try:
        role = UserRole(payload.get("role") or UserRole.MEMBER.value)
        return Principal(
            user_id=int(user_id),
            email=payload.get("email") or "",
            company_id=int(company_id),
            role=role,
        )
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Token carries malformed identity claims") from exc


def _unverified_user_id(token: str):
    # 仅用于审计日志，不作鉴权依据
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    return claims.get("userId") or claims.get("sub")


def get_current_user(request: Request) -> Principal:
    token = _extract_auth_token(request)
    if not token:
        _audit_auth_failure(request, "missing_token")
        raise AuthenticationError("No token provided")
    try:
        return decode_access_token(token)
    except AuthenticationError:
        _audit_auth_failure(request, "invalid_token", claimed_user_id=_unverified_user_id(token))
        raise


def get_optional_user(request: Request) -> Principal | None:
    token = _extract_auth_token(request)
    if not token:
        return None
    try:
        return decode_access_token(token)
    except AuthenticationError:
        # 可选鉴权下无效凭证按匿名处理
        return None


def ensure_same_company(company_id: int, actor: Principal, message: str) -> None:
    if company_id != actor.company_id:
        logger.info(
            "TENANT_DENY user=%s actor_company=%s target_company=%s",
            _mask_user_id(actor.user_id),
            actor.company_id,
            company_id,
        )
        raise ForbiddenError(message)


async def require_workspace_access(db: AsyncSession, workspace_id: int, actor: Principal) -> Workspace:
    workspace = (await db.execute(select(Workspace).where(Workspace.id == workspace_id))).scalar_one_or_none()
    if not workspace:
        raise NotFoundError("Workspace not found")
    ensure_same_company(workspace.company_id, actor, "Access denied to this workspace")
    return workspace


async def load_note_with_workspace(db: AsyncSession, note_id: int) -> tuple[Note, Workspace]:
    row = (
        await db.execute(
            select(Note, Workspace)
            .join(Workspace, Workspace.id == Note.workspace_id)
            .where(Note.id == note_id)
        )
    ).first()
    if not row:
        raise NotFoundError("Note not found")
    return row[0], row[1]


async def require_note_access(db: AsyncSession, note_id: int, actor: Principal) -> tuple[Note, Workspace]:
    note, workspace = await load_note_with_workspace(db, note_id)
    ensure_same_company(workspace.company_id, actor, "Access denied to this note")
    return note, workspace
