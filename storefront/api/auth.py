# storefront/api/auth.py
# Роуты регистрации, входа, профиля и выхода.
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from storefront.api.deps import get_cart_store, guest_session_from
from storefront.core import security
from storefront.core.config import settings
from storefront.core.cookies import set_cookie, clear_cookie
from storefront.core.errors import UnauthorizedError
from storefront.models.user import User
from storefront.schemas.auth import RegisterIn, LoginIn, LoginOut, MeOut, UserOut
from storefront.services import auth as auth_service
from storefront.services.cart import CartStore, merge_carts

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_auth_cookies(response: Response, user: User) -> str:
    access_token = security.create_access_token(user)
    refresh_token = security.create_refresh_token(user.id)
    set_cookie(response, security.ACCESS_COOKIE, access_token, max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)
    set_cookie(response, security.REFRESH_COOKIE, refresh_token, max_age=settings.REFRESH_TOKEN_EXPIRE_MINUTES * 60)
    return access_token


def _me(db: Session, user: User) -> MeOut:
    return MeOut(id=user.id, email=user.email, role=user.role, customer_id=auth_service.customer_id_for(db, user))


def _login(db: Session, store: CartStore, request: Request, response: Response, user: User) -> LoginOut:
    access_token = _set_auth_cookies(response, user)
    # гостевая корзина этого браузера переходит пользователю
    guest_session = guest_session_from(request)
    if guest_session:
        merge_carts(store, guest_session, user.id)
    return LoginOut(access_token=access_token, user=_me(db, user))


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(security.get_db)):
    """Регистрация пользователя: email + password, роль = user."""
    return auth_service.register(db, payload.email, payload.password, payload.first_name, payload.last_name)


@router.post("/login", response_model=LoginOut)
def login(
    payload: LoginIn,
    request: Request,
    response: Response,
    db: Session = Depends(security.get_db),
    store: CartStore = Depends(get_cart_store),
):
    """Логин: access_token в теле ответа и в cookie, refresh_token в cookie."""
    user = auth_service.authenticate(db, payload.email, payload.password)
    return _login(db, store, request, response, user)


@router.post("/token", response_model=LoginOut)
def token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(security.get_db),
    store: CartStore = Depends(get_cart_store),
):
    """
    OAuth2 password flow для OpenAPI-документации.
    OAuth2PasswordRequestForm ожидает username и password, email передаётся как username.
    """
    user = auth_service.authenticate(db, form_data.username, form_data.password)
    return _login(db, store, request, response, user)


@router.get("/me", response_model=MeOut)
def me(
    request: Request,
    response: Response,
    bearer: str | None = Depends(security.oauth2_scheme),
    db: Session = Depends(security.get_db),
):
    """Текущий пользователь; по refresh_token выдаёт новую пару cookies."""
    user = None
    token = security.extract_token(request, bearer)
    if token:
        try:
            user = security.user_from_token(db, token)
        except UnauthorizedError:
            logger.debug("Access token rejected, trying refresh token")

    refresh_token = request.cookies.get(security.REFRESH_COOKIE)
    if user is None and refresh_token:
        user = auth_service.user_from_refresh_token(db, refresh_token)
        _set_auth_cookies(response, user)
        logger.info(f"Re-issued tokens for user {user.id} from refresh token")

    if user is None:
        raise UnauthorizedError("Not authenticated")
    return _me(db, user)


@router.post("/logout")
def logout(response: Response):
    clear_cookie(response, security.ACCESS_COOKIE)
    clear_cookie(response, security.REFRESH_COOKIE)
    return {"success": True}
