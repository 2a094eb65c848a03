# -*- coding: utf-8 -*-
"""
CONFIGURAÇÃO APOIO FACTUAL
═══════════════════════════════════════════════════════════════════════════

Variáveis de ambiente (.env na raiz do projecto):
- SUPABASE_URL / SUPABASE_KEY / SUPABASE_SERVICE_ROLE_KEY
- SUPABASE_AUTH_URL (opcional, se a autenticação vive noutro projecto)
- JWT_ALLOW_UNVERIFIED_FALLBACK (apenas desenvolvimento)
- ENV, LOG_LEVEL, RATE_LIMIT_ENABLED, LOG_BUFFER_CAPACITY

Constantes de domínio:
- Nomes das tabelas Supabase
- Etiquetas (pt-PT) de estados, categorias e tipos de movimento
- Limites de validação dos formulários
═══════════════════════════════════════════════════════════════════════════
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

# Carregar .env da raiz do projecto (explícito para evitar ambiguidade)
load_dotenv(BASE_DIR / ".env")

# =============================================================================
# AMBIENTE
# =============================================================================

ENV = os.getenv("ENV", "production").lower()
IS_DEVELOPMENT = ENV in ("development", "dev", "local", "test")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_BUFFER_CAPACITY = int(os.getenv("LOG_BUFFER_CAPACITY", "2000"))

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# =============================================================================
# SUPABASE
# =============================================================================

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

if not SUPABASE_URL:
    logger.warning("[CONFIG] SUPABASE_URL não definido - o acesso a dados vai falhar")

TABLE_DOSSIERS = "dossiers"
TABLE_DOCUMENTS = "documents"
TABLE_CHRONOLOGY = "chronology_entries"
TABLE_TREASURY = "treasury_entries"
TABLE_CONTACT_MESSAGES = "contact_messages"
TABLE_PROFILES = "profiles"
TABLE_USER_ROLES = "user_roles"

ALL_TABLES = [
    TABLE_DOSSIERS,
    TABLE_DOCUMENTS,
    TABLE_CHRONOLOGY,
    TABLE_TREASURY,
    TABLE_CONTACT_MESSAGES,
    TABLE_PROFILES,
    TABLE_USER_ROLES,
]

# =============================================================================
# CORS
# =============================================================================

CORS_ORIGINS = [
    "https://apoiofactual.pt",
    "https://www.apoiofactual.pt",
    "https://apoio-factual.lovable.app",
]
if IS_DEVELOPMENT:
    CORS_ORIGINS.extend([
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ])

# =============================================================================
# ETIQUETAS (pt-PT)
# =============================================================================

DOSSIER_STATUS_LABELS = {
    "em_analise": "Em Análise",
    "pendente": "Pendente",
    "completo": "Completo",
    "arquivado": "Arquivado",
}

CATEGORY_LABELS = {
    "consumo": "Consumo",
    "telecomunicacoes": "Telecomunicações",
    "transito": "Trânsito",
    "fiscal": "Fiscal",
    "trabalho": "Trabalho",
    "outros": "Outros",
}
DEFAULT_CATEGORY = "outros"

DOCUMENT_TYPE_LABELS = {
    "pdf": "PDF",
    "imagem": "Imagem",
    "texto": "Texto",
    "outro": "Outro",
}

TREASURY_TYPE_LABELS = {
    "receita": "Receita",
    "despesa": "Despesa",
}

# =============================================================================
# RELATÓRIOS
# =============================================================================

TOP_DOSSIERS_LIMIT = 5
TOP_DOSSIER_NAME_MAX = 15

APP_NAME = "Apoio Factual"
REPORT_FOOTER = "Apoio Factual - Sistema de Gestão Documental"

# =============================================================================
# LIMITES DE FORMULÁRIOS
# =============================================================================

CONTACT_NAME_MIN = 2
CONTACT_NAME_MAX = 100
CONTACT_EMAIL_MAX = 255
CONTACT_SUBJECT_MAX = 200
CONTACT_MESSAGE_MIN = 10
CONTACT_MESSAGE_MAX = 2000

TITLE_MAX = 300
TEXT_MAX = 5000
SEARCH_QUERY_MAX = 200
