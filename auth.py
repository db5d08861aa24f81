import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from schemas import Admin, Claims, Credentials, Role, User

load_dotenv(find_dotenv(usecwd=True))

SECRET_KEY = os.getenv("JWT_SECRET", "SECRET")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

logger = logging.getLogger(__name__)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognised hash
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(username: str, role: Role, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = {"username": username, "role": Role(role).value}
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[Claims]:
    """Return the token's claims, or ``None`` if it is malformed, forged or expired."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return Claims(username=payload.get("username"), role=payload.get("role"))
    except (JWTError, ValidationError):
        return None


def get_current_claims(authorization: Optional[str] = Header(None)) -> Claims:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing Auth Header")
    parts = authorization.split()
    claims = None
    if len(parts) == 2 and parts[0].lower() == "bearer":
        claims = decode_access_token(parts[1])
    if claims is None:
        logger.warning("rejected bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


def get_current_admin(claims: Claims = Depends(get_current_claims)) -> Claims:
    # Role failures answer 404 rather than 403
    if claims.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admins Only Allowed")
    return claims


def require_credentials(credentials: Credentials) -> None:
    if not credentials.username or not credentials.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username and password are required.")


async def register_account(db, role: Role, credentials: Credentials) -> str:
    """Create an account in the role's collection and return a fresh token."""
    require_credentials(credentials)
    collection = db[role.value.lower()]
    if await collection.find_one({"username": credentials.username}):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists, Please login")
    model = Admin if role == Role.ADMIN else User
    doc = model(username=credentials.username, password=get_password_hash(credentials.password)).model_dump()
    try:
        await collection.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists, Please login")
    logger.info("%s signed up: %s", role.value, credentials.username)
    return create_access_token(credentials.username, role)


async def login_account(db, role: Role, credentials: Credentials) -> str:
    require_credentials(credentials)
    account = await db[role.value.lower()].find_one({"username": credentials.username})
    if not account or not verify_password(credentials.password, account.get("password", "")):
        logger.info("%s login failed: %s", role.value, credentials.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password")
    logger.info("%s logged in: %s", role.value, credentials.username)
    return create_access_token(credentials.username, role)
