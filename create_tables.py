# -*- coding: utf-8 -*-
"""
Cria o schema do Apoio Factual no Supabase.

Tabelas: dossiers, documents, chronology_entries, treasury_entries,
contact_messages, profiles, user_roles. Inclui enums, RLS, trigger
de updated_at e as funções has_role / is_admin.

Tenta o endpoint RPC exec_sql; se falhar, imprime o SQL para colar
no SQL Editor do Supabase.
"""
import os
import logging

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENUMS_SQL = """
DO $$ BEGIN
    CREATE TYPE public.app_role AS ENUM ('admin', 'user');
EXCEPTION WHEN duplicate_object THEN NULL; END $$;

DO $$ BEGIN
    CREATE TYPE public.document_type AS ENUM ('pdf', 'imagem', 'texto', 'outro');
EXCEPTION WHEN duplicate_object THEN NULL; END $$;

DO $$ BEGIN
    CREATE TYPE public.dossier_status AS ENUM ('em_analise', 'pendente', 'completo', 'arquivado');
EXCEPTION WHEN duplicate_object THEN NULL; END $$;

DO $$ BEGIN
    CREATE TYPE public.treasury_type AS ENUM ('receita', 'despesa');
EXCEPTION WHEN duplicate_object THEN NULL; END $$;
"""

TABLES_SQL = """
CREATE TABLE IF NOT EXISTS public.profiles (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL UNIQUE REFERENCES auth.users(id) ON DELETE CASCADE,
    email TEXT,
    full_name TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS public.user_roles (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    role public.app_role NOT NULL DEFAULT 'user',
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    UNIQUE (user_id, role)
);

CREATE TABLE IF NOT EXISTS public.dossiers (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT,
    client_name TEXT,
    reference_code TEXT,
    category TEXT,
    status public.dossier_status NOT NULL DEFAULT 'em_analise',
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS public.documents (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    dossier_id UUID NOT NULL REFERENCES public.dossiers(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    description TEXT,
    document_type public.document_type NOT NULL DEFAULT 'outro',
    entity TEXT,
    document_date DATE,
    file_name TEXT,
    file_path TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS public.chronology_entries (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    dossier_id UUID NOT NULL REFERENCES public.dossiers(id) ON DELETE CASCADE,
    document_id UUID REFERENCES public.documents(id) ON DELETE SET NULL,
    event_date DATE NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    source_reference TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS public.treasury_entries (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    entry_type public.treasury_type NOT NULL,
    amount NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    description TEXT NOT NULL,
    category TEXT,
    entry_date DATE NOT NULL DEFAULT CURRENT_DATE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS public.contact_messages (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    subject TEXT,
    message TEXT NOT NULL,
    read BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_dossiers_user_id ON public.dossiers(user_id);
CREATE INDEX IF NOT EXISTS idx_documents_dossier_id ON public.documents(dossier_id);
CREATE INDEX IF NOT EXISTS idx_chronology_dossier_id ON public.chronology_entries(dossier_id);
CREATE INDEX IF NOT EXISTS idx_chronology_event_date ON public.chronology_entries(event_date);
CREATE INDEX IF NOT EXISTS idx_treasury_user_date ON public.treasury_entries(user_id, entry_date DESC);
"""

FUNCTIONS_SQL = """
CREATE OR REPLACE FUNCTION public.has_role(_user_id UUID, _role public.app_role)
RETURNS BOOLEAN
LANGUAGE sql STABLE SECURITY DEFINER SET search_path = public
AS $$
    SELECT EXISTS (
        SELECT 1 FROM public.user_roles WHERE user_id = _user_id AND role = _role
    )
$$;

CREATE OR REPLACE FUNCTION public.is_admin()
RETURNS BOOLEAN
LANGUAGE sql STABLE SECURITY DEFINER SET search_path = public
AS $$
    SELECT public.has_role(auth.uid(), 'admin')
$$;

CREATE OR REPLACE FUNCTION public.update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = now();
    RETURN NEW;
END;
$$ language 'plpgsql';
"""

# Tabelas com dados de um utilizador (RLS por user_id + trigger updated_at)
USER_TABLES = ["dossiers", "documents", "chronology_entries", "treasury_entries", "profiles"]


def _user_table_sql(table: str) -> str:
    return f"""
ALTER TABLE public.{table} ENABLE ROW LEVEL SECURITY;

DROP POLICY IF EXISTS "Users manage own {table}" ON public.{table};
CREATE POLICY "Users manage own {table}"
    ON public.{table} FOR ALL
    USING (auth.uid() = user_id)
    WITH CHECK (auth.uid() = user_id);

DROP TRIGGER IF EXISTS update_{table}_updated_at ON public.{table};
CREATE TRIGGER update_{table}_updated_at
    BEFORE UPDATE ON public.{table}
    FOR EACH ROW
    EXECUTE FUNCTION public.update_updated_at_column();
"""


POLICIES_SQL = """
ALTER TABLE public.user_roles ENABLE ROW LEVEL SECURITY;

DROP POLICY IF EXISTS "Users view own roles" ON public.user_roles;
CREATE POLICY "Users view own roles"
    ON public.user_roles FOR SELECT
    USING (auth.uid() = user_id);

ALTER TABLE public.contact_messages ENABLE ROW LEVEL SECURITY;

DROP POLICY IF EXISTS "Anyone can send contact messages" ON public.contact_messages;
CREATE POLICY "Anyone can send contact messages"
    ON public.contact_messages FOR INSERT
    WITH CHECK (true);

DROP POLICY IF EXISTS "Admins manage contact messages" ON public.contact_messages;
CREATE POLICY "Admins manage contact messages"
    ON public.contact_messages FOR ALL
    USING (public.has_role(auth.uid(), 'admin'));
"""


def build_schema_sql() -> str:
    """SQL completo, idempotente, pela ordem de dependências."""
    parts = [ENUMS_SQL, TABLES_SQL, FUNCTIONS_SQL]
    parts.extend(_user_table_sql(t) for t in USER_TABLES)
    parts.append(POLICIES_SQL)
    return "\n".join(p.strip() for p in parts) + "\n"


def apply_schema(url: str, service_key: str, sql: str) -> bool:
    """Tenta executar o SQL via RPC exec_sql. Retorna True se conseguiu."""
    headers = {
        "apikey": service_key,
        "Authorization": f"Bearer {service_key}",
        "Content-Type": "application/json",
    }
    endpoint = f"{url.rstrip('/')}/rest/v1/rpc/exec_sql"
    try:
        r = requests.post(endpoint, headers=headers, json={"sql": sql}, timeout=30)
    except requests.RequestException as e:
        logger.error(f"[SCHEMA] Erro ao contactar {endpoint}: {e}")
        return False

    if r.status_code in (200, 201, 204):
        logger.info("[SCHEMA] Schema aplicado via exec_sql.")
        return True
    logger.warning(f"[SCHEMA] exec_sql devolveu {r.status_code}: {r.text[:200]}")
    return False


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    load_dotenv()

    sql = build_schema_sql()
    url = os.environ.get("SUPABASE_URL", "")
    service_key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

    print("=" * 60)
    print("CRIAR SCHEMA APOIO FACTUAL NO SUPABASE")
    print("=" * 60)

    if url and service_key and apply_schema(url, service_key, sql):
        print("\nSUCESSO: schema criado.")
        return 0

    print("\nNenhum método automático funcionou. Cola este SQL")
    print("no Supabase Dashboard > SQL Editor:")
    print("\n" + "-" * 60)
    print(sql)
    print("-" * 60)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
