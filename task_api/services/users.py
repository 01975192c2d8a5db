import logging
from datetime import datetime

import bcrypt
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..config import BCRYPT_ROUNDS
from ..database import storage_operation
from ..errors import ValidationError
from ..models import User
from ..schemas.user import UserCreate

logger = logging.getLogger(__name__)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt directly."""
    password_bytes = password.encode('utf-8')[:72]  # Truncate to 72 bytes (bcrypt limit)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8') if isinstance(hashed_password, str) else hashed_password
    return bcrypt.checkpw(password_bytes, hashed_bytes)


def full_name(user: User) -> str:
    name = f"{user.first_name or ''} {user.last_name or ''}".strip()
    return name or user.username


def create_user(db: Session, data: UserCreate) -> User:
    """Create a user with a hashed password. Username and email must be unused."""
    with storage_operation(db, "Failed to create user"):
        existing = db.execute(
            select(User.id).where(or_(User.username == data.username, User.email == data.email))
        ).first()
        if existing is not None:
            raise ValidationError.for_field("username", "Username or email already registered", data.username)

        now = datetime.utcnow()
        user = User(
            username=data.username,
            email=data.email,
            password=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    logger.info("Created user %s (%s)", user.id, user.username)
    return user
