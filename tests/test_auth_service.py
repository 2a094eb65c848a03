# -*- coding: utf-8 -*-
"""
Testes do auth_service: validação JWT (JWKS), cache de tokens,
contexto de sessão e logout.
"""

import asyncio
import json
import time
from unittest.mock import patch

import jwt as pyjwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jwt.algorithms import ECAlgorithm

import auth_service
from auth_service import SessionContext, get_current_user, revoke_session
from conftest import USER_ID


@pytest.fixture(autouse=True)
def clean_auth_state():
    auth_service._token_cache.clear()
    auth_service._revoked.clear()
    yield
    auth_service._token_cache.clear()
    auth_service._revoked.clear()


@pytest.fixture
def signing_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def jwks(signing_key):
    jwk = json.loads(ECAlgorithm.to_jwk(signing_key.public_key()))
    jwk.update({"kid": "k1", "use": "sig", "alg": "ES256"})
    return [jwk]


def _token(key, exp_delta=3600, kid="k1", **claims):
    payload = {
        "sub": USER_ID,
        "email": "ana@example.pt",
        "aud": "authenticated",
        "exp": int(time.time()) + exp_delta,
        **claims,
    }
    return pyjwt.encode(payload, key, algorithm="ES256", headers={"kid": kid})


def _authenticate(token: str) -> SessionContext:
    creds = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)
    return asyncio.run(get_current_user(creds))


class TestSignatureVerification:

    def test_valid_token_produces_session(self, signing_key, jwks):
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            session = _authenticate(_token(signing_key))
        assert session.user_id == USER_ID
        assert session.email == "ana@example.pt"
        assert not session.is_expired

    def test_forged_signature_rejected(self, jwks):
        other_key = ec.generate_private_key(ec.SECP256R1())
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            with pytest.raises(HTTPException) as exc_info:
                _authenticate(_token(other_key))
        assert exc_info.value.status_code == 401

    def test_expired_token_rejected(self, signing_key, jwks):
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            with pytest.raises(HTTPException) as exc_info:
                _authenticate(_token(signing_key, exp_delta=-60))
        assert exc_info.value.status_code == 401

    def test_wrong_audience_rejected(self, signing_key, jwks):
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            with pytest.raises(HTTPException):
                _authenticate(_token(signing_key, aud="anon"))

    def test_kid_mismatch_falls_back_to_first_signing_key(self, signing_key, jwks):
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            session = _authenticate(_token(signing_key, kid="outra"))
        assert session.user_id == USER_ID


class TestUnverifiedFallback:

    def test_disabled_by_default(self, signing_key, monkeypatch):
        monkeypatch.delenv("JWT_ALLOW_UNVERIFIED_FALLBACK", raising=False)
        with patch.object(auth_service, "_fetch_jwks", return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                _authenticate(_token(signing_key))
        assert exc_info.value.detail == auth_service.INVALID_TOKEN_DETAIL

    def test_enabled_accepts_token(self, signing_key, monkeypatch):
        monkeypatch.setenv("JWT_ALLOW_UNVERIFIED_FALLBACK", "true")
        with patch.object(auth_service, "_fetch_jwks", return_value=None):
            session = _authenticate(_token(signing_key))
        assert session.user_id == USER_ID

    def test_missing_sub_rejected(self, signing_key, monkeypatch):
        monkeypatch.setenv("JWT_ALLOW_UNVERIFIED_FALLBACK", "true")
        with patch.object(auth_service, "_fetch_jwks", return_value=None):
            with pytest.raises(HTTPException):
                _authenticate(_token(signing_key, sub=""))


class TestSessionLifecycle:

    def test_cache_avoids_second_decode(self, signing_key, jwks):
        token = _token(signing_key)
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks) as fetch:
            first = _authenticate(token)
            second = _authenticate(token)
        assert first == second
        assert fetch.call_count == 1

    def test_cache_ttl_bounded_by_exp(self, signing_key, jwks):
        token = _token(signing_key, exp_delta=30)
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            session = _authenticate(token)
        cached = auth_service._token_cache[session.token_hash]
        assert cached["expires"] <= session.expires_at + 1

    def test_logout_revokes_token(self, signing_key, jwks):
        token = _token(signing_key)
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            session = _authenticate(token)
            revoke_session(session)
            with pytest.raises(HTTPException) as exc_info:
                _authenticate(token)
        assert exc_info.value.status_code == 401
        assert session.token_hash not in auth_service._token_cache

    def test_token_without_exp_rejected(self, signing_key, jwks, monkeypatch):
        monkeypatch.setenv("JWT_ALLOW_UNVERIFIED_FALLBACK", "true")
        token = pyjwt.encode({"sub": USER_ID, "aud": "authenticated"}, signing_key,
                             algorithm="ES256", headers={"kid": "k1"})
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            with pytest.raises(HTTPException):
                _authenticate(token)
        assert auth_service._token_cache == {}

    def test_cache_never_exceeds_max_size(self, signing_key, jwks, monkeypatch):
        monkeypatch.setattr(auth_service, "TOKEN_CACHE_MAX_SIZE", 4)
        tokens = [_token(signing_key, jti=str(i)) for i in range(6)]
        with patch.object(auth_service, "_fetch_jwks", return_value=jwks):
            for token in tokens:
                _authenticate(token)
        assert len(auth_service._token_cache) == 4
        # os mais antigos saem primeiro
        assert auth_service._get_token_hash(tokens[0]) not in auth_service._token_cache
        assert auth_service._get_token_hash(tokens[-1]) in auth_service._token_cache

    def test_expired_revocations_are_purged(self):
        auth_service._revoked["velho"] = time.time() - 10
        assert auth_service.is_revoked("velho") is False
        assert "velho" not in auth_service._revoked

    def test_session_expiry(self):
        session = SessionContext(user_id=USER_ID, email="", expires_at=time.time() - 1, token_hash="h")
        assert session.is_expired


class TestSupabaseClients:

    def test_missing_config_raises(self, monkeypatch):
        monkeypatch.setattr(auth_service, "_supabase_admin", None)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        with pytest.raises(RuntimeError):
            auth_service.get_supabase_admin()

    def test_client_is_singleton(self, monkeypatch):
        monkeypatch.setattr(auth_service, "_supabase", None)
        with patch.object(auth_service, "create_client", return_value=object()) as create:
            first = auth_service.get_supabase()
            second = auth_service.get_supabase()
        assert first is second
        assert create.call_count == 1
