# dbkompare/core/security.py
"""
Lectura de los tokens de Cognito. La firma la valida el authorizer de
API Gateway antes de invocar la función; aquí sólo se leen los claims.
"""
from typing import Any, Dict, List, Optional

from jose import JWTError, jwt

from dbkompare.core.errors import ForbiddenError, UnauthorizedError

GROUPS_CLAIM = "cognito:groups"


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise UnauthorizedError("Unauthorized")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return authorization.strip()


def decode_token_claims(token: str) -> Dict[str, Any]:
    try:
        return jwt.get_unverified_claims(token)
    except JWTError as e:
        raise UnauthorizedError("Unauthorized") from e


def get_user_groups(claims: Dict[str, Any]) -> List[str]:
    groups = claims.get(GROUPS_CLAIM) or []
    if isinstance(groups, str):
        groups = [groups]
    return list(groups)


def require_group(authorization: Optional[str], *allowed_groups: str) -> Dict[str, Any]:
    """
    Devuelve los claims si el token pertenece a alguno de los grupos permitidos.
    """
    claims = decode_token_claims(extract_bearer_token(authorization))
    groups = get_user_groups(claims)
    if not groups:
        raise UnauthorizedError("Unauthorized")
    if not set(groups) & set(allowed_groups):
        raise ForbiddenError("Forbidden: insufficient permissions")
    return claims
