"""
AUTH SERVICE - Apoio Factual
============================================================
Verifica tokens JWT do Supabase e produz o contexto de sessão
(SessionContext) que é passado explicitamente a cada rota.

Validação:
  1. Busca as chaves JWKS do Supabase (cache de 1 hora)
  2. Verifica assinatura, expiração e audience = "authenticated"
  3. Extrai user_id (sub), email e exp do payload

Ciclo de vida da sessão:
  - Adquirida quando um JWT válido é apresentado
  - Termina quando o token expira ou com POST /auth/logout,
    que revoga o hash do token até à sua expiração

Fallback sem verificação de assinatura APENAS com
JWT_ALLOW_UNVERIFIED_FALLBACK=true (desenvolvimento). Assinatura
activamente inválida é sempre rejeitada.
============================================================
"""

import os
import hashlib
import logging
import time
import threading
from dataclasses import dataclass

import jwt as pyjwt
import httpx

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import create_client, Client

logger = logging.getLogger(__name__)

# Esquema Bearer: extrai o token do header "Authorization: Bearer <token>"
security = HTTPBearer()

_supabase: Client | None = None
_supabase_admin: Client | None = None
_supabase_lock = threading.Lock()

# Cache de tokens validados: {token_hash: {"session": SessionContext, "expires": ts}}
_token_cache: dict = {}
_token_cache_lock = threading.Lock()
TOKEN_CACHE_TTL = 120  # Cache por 2 minutos
TOKEN_CACHE_MAX_SIZE = 500

# Tokens revogados por logout: {token_hash: exp}
_revoked: dict = {}
_revoked_lock = threading.Lock()

JWKS_CACHE_TTL = 3600  # Cache por 1 hora
_jwks_cache: dict = {
    "keys": None,
    "fetched_at": 0.0,
}
_jwks_lock = threading.Lock()

INVALID_TOKEN_DETAIL = "Token inválido ou expirado. Faça login novamente."


@dataclass(frozen=True)
class SessionContext:
    """Sessão autenticada de um pedido (o JWT tem sempre exp)."""
    user_id: str
    email: str
    expires_at: float
    token_hash: str

    @property
    def is_expired(self) -> bool:
        return bool(self.expires_at) and time.time() >= self.expires_at


def _fetch_jwks() -> list[dict] | None:
    """
    Busca as chaves JWKS do Supabase.

    Tenta {SUPABASE_AUTH_URL}/auth/v1/.well-known/jwks.json e depois
    {SUPABASE_AUTH_URL}/auth/v1/keys. Retorna None se ambos falharem.
    """
    now = time.time()

    with _jwks_lock:
        if _jwks_cache["keys"] is not None and (now - _jwks_cache["fetched_at"]) < JWKS_CACHE_TTL:
            return _jwks_cache["keys"]

    # A autenticação pode viver num projecto Supabase diferente dos dados
    auth_url = os.environ.get("SUPABASE_AUTH_URL", "").rstrip("/")
    if not auth_url:
        auth_url = os.environ.get("SUPABASE_URL", "").rstrip("/")
    if not auth_url:
        logger.warning("[AUTH] SUPABASE_AUTH_URL/SUPABASE_URL não definido, impossível buscar JWKS.")
        return None

    endpoints = [
        f"{auth_url}/auth/v1/.well-known/jwks.json",
        f"{auth_url}/auth/v1/keys",
    ]

    for url in endpoints:
        try:
            resp = httpx.get(url, timeout=10.0)
        except httpx.HTTPError as e:
            logger.debug(f"[AUTH] Falha ao buscar JWKS de {url}: {e}")
            continue
        if resp.status_code != 200:
            continue
        try:
            keys = resp.json().get("keys", [])
        except ValueError:
            logger.debug(f"[AUTH] Resposta JWKS inválida de {url}")
            continue
        if keys:
            with _jwks_lock:
                _jwks_cache["keys"] = keys
                _jwks_cache["fetched_at"] = time.time()
            logger.info(f"[AUTH] JWKS carregado de {url} ({len(keys)} chave(s))")
            return keys

    logger.warning("[AUTH] Não foi possível obter JWKS do Supabase.")
    return None


def _find_signing_key(token: str, jwks: list[dict]):
    """
    Procura no JWKS a chave pública do token (match por kid, senão a
    primeira chave de assinatura). Retorna (chave, algoritmo) ou (None, None).
    """
    try:
        header = pyjwt.get_unverified_header(token)
    except pyjwt.DecodeError:
        return None, None

    token_kid = header.get("kid")
    token_alg = header.get("alg", "ES256")

    matched_key = next((jwk for jwk in jwks if jwk.get("kid") == token_kid), None)
    if matched_key is None:
        matched_key = next((jwk for jwk in jwks if jwk.get("use", "sig") == "sig"), None)
        if matched_key is not None:
            logger.debug(f"[AUTH] Kid mismatch: token kid={token_kid}, usando kid={matched_key.get('kid')}")

    if matched_key is None:
        return None, None

    from jwt.algorithms import ECAlgorithm, RSAAlgorithm

    kty = matched_key.get("kty", "")
    try:
        if kty == "EC":
            return ECAlgorithm.from_jwk(matched_key), token_alg
        if kty == "RSA":
            return RSAAlgorithm.from_jwk(matched_key), token_alg
    except (ValueError, pyjwt.InvalidKeyError) as e:
        logger.debug(f"[AUTH] Erro ao construir chave pública do JWK: {e}")
        return None, None

    logger.debug(f"[AUTH] Tipo de chave não suportado: kty={kty}")
    return None, None


def get_supabase() -> Client:
    """Retorna o cliente Supabase com anon key."""
    global _supabase
    with _supabase_lock:
        if _supabase is None:
            url = os.environ.get("SUPABASE_URL", "")
            key = os.environ.get("SUPABASE_KEY", "")
            if not url or not key:
                raise RuntimeError("SUPABASE_URL e SUPABASE_KEY devem estar definidos.")
            _supabase = create_client(url, key)
        return _supabase


def get_supabase_admin() -> Client:
    """Retorna o cliente Supabase com service_role key (acesso total)."""
    global _supabase_admin
    with _supabase_lock:
        if _supabase_admin is None:
            url = os.environ.get("SUPABASE_URL", "")
            key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
            if not url or not key:
                raise RuntimeError(
                    "SUPABASE_URL e SUPABASE_SERVICE_ROLE_KEY devem estar definidos."
                )
            _supabase_admin = create_client(url, key)
        return _supabase_admin


def _get_token_hash(token: str) -> str:
    """SHA256 hash do token (chave de cache e de revogação)."""
    return hashlib.sha256(token.encode()).hexdigest()


def _decode_payload(token: str) -> dict | None:
    """
    Decode do JWT com verificação de assinatura (JWKS), expiração e audience.

    Returns:
        payload do token ou None se inválido
    """
    payload = None

    try:
        jwks = _fetch_jwks()
        if jwks:
            public_key, algorithm = _find_signing_key(token, jwks)
            if public_key is not None:
                payload = pyjwt.decode(
                    token,
                    key=public_key,
                    algorithms=[algorithm],
                    audience="authenticated",
                    options={"require": ["exp"]},
                )
                return payload
    except pyjwt.ExpiredSignatureError:
        logger.info("[AUTH] Token JWT expirado.")
        return None
    except pyjwt.InvalidAudienceError:
        logger.warning("[AUTH] Token JWT com audience inválida.")
        return None
    except pyjwt.InvalidSignatureError:
        logger.warning("[AUTH] Assinatura JWT inválida, token REJEITADO.")
        return None
    except pyjwt.PyJWTError as e:
        logger.debug(f"[AUTH] Verificação JWKS falhou ({type(e).__name__}: {e})")

    allow_unverified = os.environ.get("JWT_ALLOW_UNVERIFIED_FALLBACK", "false").lower() == "true"
    if not allow_unverified:
        logger.warning("[AUTH] JWT rejeitado: assinatura não verificada e fallback desactivado.")
        return None

    try:
        payload = pyjwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True, "verify_aud": True, "require": ["exp"]},
            audience="authenticated",
        )
    except pyjwt.ExpiredSignatureError:
        logger.info("[AUTH] Token JWT expirado.")
        return None
    except pyjwt.PyJWTError as e:
        logger.warning(f"[AUTH] Token JWT inválido: {type(e).__name__}: {e}")
        return None

    logger.warning("[AUTH] JWT aceite SEM verificação de assinatura (JWT_ALLOW_UNVERIFIED_FALLBACK=true).")
    return payload


def _build_session(token: str, token_hash: str) -> SessionContext | None:
    payload = _decode_payload(token)
    if not payload:
        return None

    user_id = payload.get("sub", "")
    if not user_id:
        logger.warning("[AUTH] Token JWT sem campo 'sub'.")
        return None

    session = SessionContext(
        user_id=user_id,
        email=payload.get("email", "") or "",
        expires_at=float(payload.get("exp", 0) or 0),
        token_hash=token_hash,
    )
    logger.info(f"[AUTH] Utilizador autenticado: {user_id[:8]}...")
    return session


def is_revoked(token_hash: str) -> bool:
    now = time.time()
    with _revoked_lock:
        for k in [k for k, exp in _revoked.items() if exp and exp <= now]:
            del _revoked[k]
        return token_hash in _revoked


def revoke_session(session: SessionContext) -> None:
    """Termina a sessão: o token deixa de ser aceite até expirar."""
    with _revoked_lock:
        _revoked[session.token_hash] = session.expires_at
    with _token_cache_lock:
        _token_cache.pop(session.token_hash, None)
    logger.info(f"[AUTH] Sessão terminada: {session.user_id[:8]}...")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> SessionContext:
    """
    Dependency do FastAPI: valida o JWT e devolve o SessionContext.

    O cache de tokens validados nunca ultrapassa o exp do JWT.
    """
    token = credentials.credentials
    token_hash = _get_token_hash(token)
    now = time.time()

    if is_revoked(token_hash):
        raise HTTPException(status_code=401, detail=INVALID_TOKEN_DETAIL)

    with _token_cache_lock:
        cached = _token_cache.get(token_hash)
        if cached is not None:
            if now < cached["expires"]:
                return cached["session"]
            del _token_cache[token_hash]

        if len(_token_cache) > TOKEN_CACHE_MAX_SIZE // 2:
            for k in [k for k, v in _token_cache.items() if now >= v["expires"]]:
                del _token_cache[k]

        # Ainda cheio: descarta os mais antigos (ordem de inserção)
        overflow = len(_token_cache) - TOKEN_CACHE_MAX_SIZE + 1
        for k in list(_token_cache)[:max(overflow, 0)]:
            del _token_cache[k]

    session = _build_session(token, token_hash)
    if session is None:
        raise HTTPException(status_code=401, detail=INVALID_TOKEN_DETAIL)

    cache_ttl = TOKEN_CACHE_TTL
    if session.expires_at and session.expires_at > now:
        cache_ttl = min(TOKEN_CACHE_TTL, session.expires_at - now)
    with _token_cache_lock:
        _token_cache[token_hash] = {"session": session, "expires": now + cache_ttl}
    return session
