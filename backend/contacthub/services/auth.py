
from sqlmodel import Session, select

from contacthub.models.base import utcnow
from contacthub.models.user import User, UserRole
from contacthub.schemas.auth import LoginRequest, RegisterRequest, Token
from contacthub.utils.security import create_access_token, get_password_hash, verify_password


class AuthService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def register(self, payload: RegisterRequest) -> Token:
        email = str(payload.email).lower()
        existing_user = self.session.exec(select(User).where(User.email == email)).first()
        if existing_user:
            raise ValueError("User already exists")

        user = User(
            name=payload.name.strip(),
            email=email,
            phone=payload.phone,
            password_hash=get_password_hash(payload.password),
            role=UserRole.USER.value,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)

        return self._build_token(user)

    def authenticate(self, payload: LoginRequest) -> Token:
        statement = select(User).where(User.email == str(payload.email).lower())
        user = self.session.exec(statement).first()

        if not user or not user.is_active:
            raise ValueError("Invalid credentials")

        if not verify_password(payload.password, user.password_hash):
            raise ValueError("Invalid credentials")

        user.last_login_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)

        return self._build_token(user)

    def _build_token(self, user: User) -> Token:
        return Token(access_token=create_access_token(str(user.id), {"role": user.role}))
