from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.dependencies import get_config, get_ledger
from trading.config import TradingConfig
from trading.errors import AccountNotFound, StorageUnavailable
from trading.ledger import AccountLedger
from trading.models.account import Account

security = HTTPBearer(auto_error=False)

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        return False


def create_access_token(account: Account, config: TradingConfig) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": account.id,
        "email": account.email,
        "iat": now,
        "exp": now + timedelta(hours=config.token_ttl_hours),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=ALGORITHM)


def _unauthorized(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_account_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    config: TradingConfig = Depends(get_config),
) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Unauthorized")
    try:
        payload = jwt.decode(
            credentials.credentials, config.jwt_secret, algorithms=[ALGORITHM]
        )
    except jwt.PyJWTError:
        raise _unauthorized("Invalid token")
    account_id = payload.get("sub")
    if not account_id:
        raise _unauthorized()
    return account_id


def get_current_account(
    account_id: str = Depends(get_current_account_id),
    ledger: AccountLedger = Depends(get_ledger),
) -> Account:
    try:
        return ledger.get_account(account_id)
    except AccountNotFound:
        raise _unauthorized("User not found")
    except StorageUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Storage unavailable: {e!s}",
        ) from e
