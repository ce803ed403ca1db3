# storefront/core/security.py
# Хеширование паролей, выпуск и проверка JWT, зависимости аутентификации.
# Токен ищется в заголовке Authorization: Bearer, затем в cookie access_token.
import logging
from datetime import datetime, timedelta

from passlib.context import CryptContext
from jose import jwt, JWTError
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.errors import UnauthorizedError, ForbiddenError
from storefront.db.session import SessionLocal
from storefront.models.user import User, RoleEnum

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# auto_error=False: токен может прийти и в cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def get_password_hash(password: str) -> str:
    """Хешируем пароль для хранения в БД."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверяем пароль при логине."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    """JWT с полями sub (id пользователя), email и role."""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    role = user.role.value if isinstance(user.role, RoleEnum) else str(user.role)
    to_encode = {"sub": str(user.id), "email": user.email, "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "type": "refresh", "exp": expire}
    return jwt.encode(to_encode, settings.REFRESH_SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Возвращает claims или бросает UnauthorizedError (в т.ч. для просроченного токена)."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Could not validate credentials")
    if payload.get("sub") is None:
        raise UnauthorizedError("Could not validate credentials")
    return payload


def decode_refresh_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.REFRESH_SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid refresh token")
    if payload.get("type") != "refresh" or payload.get("sub") is None:
        raise UnauthorizedError("Invalid refresh token")
    return payload


def get_db():
    """Зависимость для получения сессии БД в эндпоинтах."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def extract_token(request: Request, bearer: str | None) -> str | None:
    return bearer or request.cookies.get(ACCESS_COOKIE)


def user_from_token(db: Session, token: str) -> User:
    payload = decode_access_token(token)
    user = db.query(User).filter(User.id == payload["sub"]).first()
    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    return user


def get_current_user(
    request: Request,
    bearer: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Возвращает текущего пользователя по JWT или бросает 401."""
    token = extract_token(request, bearer)
    if not token:
        raise UnauthorizedError("Not authenticated")
    return user_from_token(db, token)


def get_optional_user(
    request: Request,
    bearer: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """Как get_current_user, но для гостя (или негодного токена) возвращает None."""
    token = extract_token(request, bearer)
    if not token:
        return None
    try:
        return user_from_token(db, token)
    except UnauthorizedError:
        logger.debug("Ignoring invalid token on optional-auth endpoint")
        return None


def require_role(role: RoleEnum):
    """Фабрика зависимости: проверяет роль пользователя."""
    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise ForbiddenError("Insufficient privileges")
        return current_user
    return _checker
