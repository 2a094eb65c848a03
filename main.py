"""
MAIN - Apoio Factual (FastAPI)
============================================================
Servidor principal com:
  - Conexão ao Supabase
  - Rota de saúde (GET /health) e formulário de contacto
  - Dossiês, documentos, cronologia factual e análise de completude
  - Relatórios, arquivo e tesouraria pessoal
  - Exportações CSV / PDF
  - Endpoints de admin (mensagens de contacto, logs)
============================================================
"""

import io
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, EmailStr, Field, field_validator
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from auth_service import SessionContext, get_current_user, get_supabase, get_supabase_admin, revoke_session
from apoio_factual import __version__
from apoio_factual.analysis import analyze_dossier, group_chronology_by_year
from apoio_factual.config import (
    APP_NAME,
    CONTACT_EMAIL_MAX,
    CONTACT_MESSAGE_MAX,
    CONTACT_MESSAGE_MIN,
    CONTACT_NAME_MAX,
    CONTACT_NAME_MIN,
    CONTACT_SUBJECT_MAX,
    CORS_ORIGINS,
    LOG_BUFFER_CAPACITY,
    LOG_LEVEL,
    RATE_LIMIT_ENABLED,
    SUPABASE_KEY,
    SUPABASE_SERVICE_ROLE_KEY,
    SUPABASE_URL,
    TEXT_MAX,
    TITLE_MAX,
)
from apoio_factual.csv_export import (
    CHRONOLOGY_HEADERS,
    CSV_MEDIA_TYPE,
    REPORT_HEADERS,
    TREASURY_HEADERS,
    chronology_rows,
    csv_bytes,
    report_rows,
    treasury_rows,
)
from apoio_factual.filters import filter_chronology, filter_dossiers, filter_treasury
from apoio_factual.formatting import format_euro, format_month_pt
from apoio_factual.log_buffer import install_log_buffer
from apoio_factual.models import DocumentType, DossierStatus, TreasuryType
from apoio_factual.pdf_export import PDF_MEDIA_TYPE, build_chronology_pdf, build_report_pdf
from apoio_factual.reports import (
    archived_dossiers,
    build_dossier_summaries,
    build_report,
    dashboard_stats,
    filter_summaries,
)
from apoio_factual.repository import NotFoundError, RepositoryError, SupabaseRepository
from apoio_factual.treasury import available_months, compute_totals
from apoio_factual.utils.sanitize import sanitize_download_name

# Buffer de logs em memória para /admin/logs (captura todos os módulos)
_log_buffer = install_log_buffer(LOG_BUFFER_CAPACITY, LOG_LEVEL)

logger = logging.getLogger(__name__)


# ============================================================
# RATE LIMITING
# ============================================================

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"[RATE LIMIT] {get_remote_address(request)} em {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Demasiados pedidos. Tente novamente em breve.",
            "retry_after": str(exc.detail or ""),
        },
    )


def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Inicializa recursos no arranque."""
    if not SUPABASE_URL or not SUPABASE_KEY:
        logger.warning("[AVISO] SUPABASE_URL ou SUPABASE_KEY não definidos no .env")
    else:
        get_supabase()
        logger.info(f"[OK] Supabase (anon) conectado: {SUPABASE_URL[:40]}...")

    if not SUPABASE_SERVICE_ROLE_KEY:
        logger.warning("[AVISO] SUPABASE_SERVICE_ROLE_KEY não definida - operações de dados falharão")
    else:
        get_supabase_admin()
        logger.info("[OK] Supabase (service_role) conectado.")

    logger.info(f"[OK] {APP_NAME} - Servidor iniciado.")
    yield
    logger.info("[OK] Servidor encerrado.")


# ============================================================
# APP
# ============================================================

app = FastAPI(
    title=APP_NAME,
    description="Organização de dossiês, documentos e cronologia factual",
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
app.add_exception_handler(NotFoundError, _not_found_handler)
app.add_exception_handler(RepositoryError, _repository_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=r"https://[a-zA-Z0-9-]+\.lovable\.(app|dev)$",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# ============================================================
# DEPENDÊNCIAS
# ============================================================

def get_repository() -> SupabaseRepository:
    """Repositório sobre o cliente service_role."""
    try:
        return SupabaseRepository(get_supabase_admin())
    except RuntimeError as e:
        logger.error(f"[CONFIG] {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Serviço de dados indisponível.",
        )


async def require_admin(
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
) -> SessionContext:
    if not repo.is_admin(user.user_id):
        logger.warning(f"[ADMIN] Acesso negado a {user.user_id[:8]}...")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Apenas administradores.",
        )
    return user


def _download(content: bytes, media_type: str, name: str, extension: str) -> StreamingResponse:
    filename = f"{sanitize_download_name(name)}-{date.today().isoformat()}.{extension}"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _changes(req: BaseModel) -> dict:
    data = req.model_dump(exclude_unset=True, mode="json")
    if not data:
        raise HTTPException(status_code=422, detail="Nenhum campo para actualizar.")
    return data


# ============================================================
# MODELOS DE PEDIDO
# ============================================================

def _not_null(v):
    # PATCH: omitir um campo obrigatório é permitido, enviá-lo a null não
    if v is None:
        raise ValueError("Campo obrigatório não pode ser nulo")
    return v


class ContactRequest(BaseModel):
    name: str = Field(min_length=CONTACT_NAME_MIN, max_length=CONTACT_NAME_MAX)
    email: EmailStr
    subject: Optional[str] = Field(default=None, max_length=CONTACT_SUBJECT_MAX)
    message: str = Field(min_length=CONTACT_MESSAGE_MIN, max_length=CONTACT_MESSAGE_MAX)

    @field_validator("name", "message", "subject", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, v):
        if len(v) > CONTACT_EMAIL_MAX:
            raise ValueError(f"Email demasiado longo (máx. {CONTACT_EMAIL_MAX} caracteres)")
        return v


class ProfileUpdate(BaseModel):
    full_name: str = Field(min_length=1, max_length=CONTACT_NAME_MAX)


class DossierCreate(BaseModel):
    title: str = Field(min_length=1, max_length=TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    client_name: Optional[str] = Field(default=None, max_length=TITLE_MAX)
    reference_code: Optional[str] = Field(default=None, max_length=TITLE_MAX)
    category: Optional[str] = Field(default=None, max_length=100)
    status: DossierStatus = DossierStatus.EM_ANALISE


class DossierUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    client_name: Optional[str] = Field(default=None, max_length=TITLE_MAX)
    reference_code: Optional[str] = Field(default=None, max_length=TITLE_MAX)
    category: Optional[str] = Field(default=None, max_length=100)
    status: Optional[DossierStatus] = None

    @field_validator("title", "status", mode="before")
    @classmethod
    def reject_null(cls, v):
        return _not_null(v)


class DocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    document_type: DocumentType = DocumentType.OUTRO
    entity: Optional[str] = Field(default=None, max_length=TITLE_MAX)
    document_date: Optional[date] = None
    file_name: Optional[str] = Field(default=None, max_length=TITLE_MAX)
    file_path: Optional[str] = Field(default=None, max_length=1000)


class ChronologyCreate(BaseModel):
    dossier_id: str
    event_date: date
    title: str = Field(min_length=1, max_length=TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    source_reference: Optional[str] = Field(default=None, max_length=TITLE_MAX)
    document_id: Optional[str] = None


class ChronologyUpdate(BaseModel):
    event_date: Optional[date] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    source_reference: Optional[str] = Field(default=None, max_length=TITLE_MAX)
    document_id: Optional[str] = None

    @field_validator("event_date", "title", mode="before")
    @classmethod
    def reject_null(cls, v):
        return _not_null(v)


class TreasuryCreate(BaseModel):
    entry_type: TreasuryType
    amount: float = Field(gt=0)
    description: str = Field(min_length=1, max_length=TITLE_MAX)
    entry_date: date
    category: Optional[str] = Field(default=None, max_length=100)


# ============================================================
# ROTAS PÚBLICAS
# ============================================================

@app.get("/health")
async def health():
    """Rota de saúde - verifica se o servidor está online."""
    return {"status": "online"}


@app.post("/contact", status_code=201)
@limiter.limit("5/minute")
@limiter.limit("20/day")
async def contact(
    request: Request,
    req: ContactRequest,
    repo: SupabaseRepository = Depends(get_repository),
):
    """Formulário de contacto da página pública."""
    repo.create_contact_message(req.model_dump())
    return {"status": "ok", "message": "Mensagem enviada com sucesso."}


# ============================================================
# PERFIL / SESSÃO
# ============================================================

@app.get("/me")
@limiter.limit("60/minute")
async def me(
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    """Dados do utilizador autenticado."""
    profile = repo.get_profile(user.user_id)
    return {
        "user_id": user.user_id,
        "email": user.email,
        "full_name": profile.full_name if profile else None,
        "is_admin": repo.is_admin(user.user_id),
    }


@app.patch("/me")
@limiter.limit("30/minute")
async def update_me(
    request: Request,
    req: ProfileUpdate,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    profile = repo.update_profile(user.user_id, req.full_name.strip())
    return profile.to_dict()


@app.post("/auth/logout")
@limiter.limit("30/minute")
async def logout(request: Request, user: SessionContext = Depends(get_current_user)):
    """Termina a sessão actual (o token deixa de ser aceite)."""
    revoke_session(user)
    return {"status": "ok"}


@app.get("/dashboard")
@limiter.limit("60/minute")
async def dashboard(
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    dossiers = repo.list_dossiers(user.user_id)
    documents = repo.list_documents(user.user_id)
    return dashboard_stats(dossiers, len(documents))


# ============================================================
# DOSSIÊS
# ============================================================

@app.get("/dossiers")
@limiter.limit("60/minute")
async def list_dossiers(
    request: Request,
    q: Optional[str] = None,
    dossier_status: Optional[str] = Query(None, alias="status"),
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    """Lista dossiês (mais recentes primeiro) com pesquisa e filtro por estado."""
    dossiers = filter_dossiers(repo.list_dossiers(user.user_id), q, dossier_status)
    return {"dossiers": [d.to_dict() for d in dossiers], "total": len(dossiers)}


@app.post("/dossiers", status_code=201)
@limiter.limit("30/minute")
async def create_dossier(
    request: Request,
    req: DossierCreate,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    dossier = repo.create_dossier(user.user_id, req.model_dump(mode="json"))
    return dossier.to_dict()


@app.get("/dossiers/{dossier_id}")
@limiter.limit("60/minute")
async def get_dossier(
    dossier_id: str,
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    return repo.get_dossier(user.user_id, dossier_id).to_dict()


@app.patch("/dossiers/{dossier_id}")
@limiter.limit("30/minute")
async def update_dossier(
    dossier_id: str,
    request: Request,
    req: DossierUpdate,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    return repo.update_dossier(user.user_id, dossier_id, _changes(req)).to_dict()


@app.delete("/dossiers/{dossier_id}")
@limiter.limit("30/minute")
async def delete_dossier(
    dossier_id: str,
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    repo.delete_dossier(user.user_id, dossier_id)
    return {"status": "ok", "removed": dossier_id}


# ============================================================
# DOCUMENTOS
# ============================================================

@app.get("/dossiers/{dossier_id}/documents")
@limiter.limit("60/minute")
async def list_documents(
    dossier_id: str,
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    repo.get_dossier(user.user_id, dossier_id)
    documents = repo.list_documents(user.user_id, dossier_id)
    return {"documents": [d.to_dict() for d in documents], "total": len(documents)}


@app.post("/dossiers/{dossier_id}/documents", status_code=201)
@limiter.limit("30/minute")
async def create_document(
    dossier_id: str,
    request: Request,
    req: DocumentCreate,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    document = repo.create_document(user.user_id, dossier_id, req.model_dump(mode="json"))
    return document.to_dict()


@app.delete("/documents/{document_id}")
@limiter.limit("30/minute")
async def delete_document(
    document_id: str,
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    repo.delete_document(user.user_id, document_id)
    return {"status": "ok", "removed": document_id}


@app.get("/dossiers/{dossier_id}/analysis")
@limiter.limit("60/minute")
async def dossier_analysis(
    dossier_id: str,
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    """Lacunas, inconsistências e relações documento/cronologia de um dossiê."""
    repo.get_dossier(user.user_id, dossier_id)
    documents = repo.list_documents(user.user_id, dossier_id)
    entries = repo.list_chronology(user.user_id, dossier_id)
    result = analyze_dossier(documents, entries)
    result["dossier_id"] = dossier_id
    return result


# ============================================================
# CRONOLOGIA
# ============================================================

@app.get("/chronology")
@limiter.limit("60/minute")
async def list_chronology(
    request: Request,
    dossier_id: Optional[str] = None,
    q: Optional[str] = None,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    """Entradas filtradas + agrupamento por ano (ano mais recente primeiro)."""
    entries = filter_chronology(repo.list_chronology(user.user_id), dossier_id, q)
    groups = group_chronology_by_year(entries)
    return {
        "entries": [e.to_dict() for e in entries],
        "total": len(entries),
        "years": list(groups.keys()),
        "groups": [
            {"year": year, "entries": [e.to_dict() for e in year_entries]}
            for year, year_entries in groups.items()
        ],
    }


@app.post("/chronology", status_code=201)
@limiter.limit("30/minute")
async def create_chronology_entry(
    request: Request,
    req: ChronologyCreate,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    entry = repo.create_chronology_entry(user.user_id, req.model_dump(mode="json"))
    return entry.to_dict()


@app.patch("/chronology/{entry_id}")
@limiter.limit("30/minute")
async def update_chronology_entry(
    entry_id: str,
    request: Request,
    req: ChronologyUpdate,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    return repo.update_chronology_entry(user.user_id, entry_id, _changes(req)).to_dict()


@app.delete("/chronology/{entry_id}")
@limiter.limit("30/minute")
async def delete_chronology_entry(
    entry_id: str,
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    repo.delete_chronology_entry(user.user_id, entry_id)
    return {"status": "ok", "removed": entry_id}


@app.get("/chronology/export.csv")
@limiter.limit("20/minute")
async def export_chronology_csv(
    request: Request,
    dossier_id: Optional[str] = None,
    q: Optional[str] = None,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    entries = filter_chronology(repo.list_chronology(user.user_id), dossier_id, q)
    logger.info(f"[EXPORT] CSV cronologia: {len(entries)} entrada(s)")
    return _download(csv_bytes(CHRONOLOGY_HEADERS, chronology_rows(entries)), CSV_MEDIA_TYPE, "cronologia", "csv")


@app.get("/chronology/export.pdf")
@limiter.limit("10/minute")
async def export_chronology_pdf(
    request: Request,
    dossier_id: Optional[str] = None,
    q: Optional[str] = None,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    dossier_title = None
    if dossier_id and dossier_id != "all":
        dossier_title = repo.get_dossier(user.user_id, dossier_id).title
    entries = filter_chronology(repo.list_chronology(user.user_id), dossier_id, q)
    try:
        pdf = build_chronology_pdf(entries, dossier_title)
    except Exception:
        logger.exception("[EXPORT] Erro ao gerar PDF da cronologia")
        raise HTTPException(status_code=500, detail="Erro ao gerar PDF.")
    return _download(pdf, PDF_MEDIA_TYPE, "cronologia", "pdf")


# ============================================================
# RELATÓRIOS / ARQUIVO
# ============================================================

def _load_report_data(repo: SupabaseRepository, user_id: str):
    return (
        repo.list_dossiers(user_id),
        repo.list_documents(user_id),
        repo.list_chronology(user_id),
    )


@app.get("/reports")
@limiter.limit("30/minute")
async def reports(
    request: Request,
    report_filter: Optional[str] = Query(None, alias="filter"),
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    """Listagem factual dos dossiês + estatísticas e dados para gráficos."""
    return build_report(*_load_report_data(repo, user.user_id), report_filter=report_filter)


@app.get("/reports/export.csv")
@limiter.limit("20/minute")
async def export_reports_csv(
    request: Request,
    report_filter: Optional[str] = Query(None, alias="filter"),
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    summaries = filter_summaries(build_dossier_summaries(*_load_report_data(repo, user.user_id)), report_filter)
    logger.info(f"[EXPORT] CSV relatório: {len(summaries)} dossiê(s)")
    return _download(csv_bytes(REPORT_HEADERS, report_rows(summaries)), CSV_MEDIA_TYPE, "relatorio-dossies", "csv")


@app.get("/reports/export.pdf")
@limiter.limit("10/minute")
async def export_reports_pdf(
    request: Request,
    report_filter: Optional[str] = Query(None, alias="filter"),
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    report = build_report(*_load_report_data(repo, user.user_id), report_filter=report_filter)
    try:
        pdf = build_report_pdf(report)
    except Exception:
        logger.exception("[EXPORT] Erro ao gerar PDF do relatório")
        raise HTTPException(status_code=500, detail="Erro ao gerar PDF.")
    return _download(pdf, PDF_MEDIA_TYPE, "relatorio-dossies", "pdf")


@app.get("/archive")
@limiter.limit("60/minute")
async def archive(
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    dossiers = archived_dossiers(repo.list_dossiers(user.user_id), repo.list_documents(user.user_id))
    return {"dossiers": dossiers, "total": len(dossiers)}


# ============================================================
# TESOURARIA
# ============================================================

@app.get("/treasury")
@limiter.limit("60/minute")
async def treasury(
    request: Request,
    entry_type: Optional[str] = Query(None, alias="type"),
    month: Optional[str] = None,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    """Movimentos filtrados, totais sobre o filtro e meses disponíveis."""
    all_entries = repo.list_treasury(user.user_id)
    entries = filter_treasury(all_entries, entry_type, month)
    totals = compute_totals(entries)
    return {
        "entries": [e.to_dict() for e in entries],
        "totals": totals.to_dict(),
        "totals_formatted": {
            "receitas": format_euro(totals.receitas),
            "despesas": format_euro(totals.despesas),
            "saldo": format_euro(totals.saldo),
        },
        "months": [
            {"value": m, "label": format_month_pt(m)}
            for m in available_months(all_entries)
        ],
    }


@app.post("/treasury", status_code=201)
@limiter.limit("30/minute")
async def create_treasury_entry(
    request: Request,
    req: TreasuryCreate,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    return repo.create_treasury_entry(user.user_id, req.model_dump(mode="json")).to_dict()


@app.delete("/treasury/{entry_id}")
@limiter.limit("30/minute")
async def delete_treasury_entry(
    entry_id: str,
    request: Request,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    repo.delete_treasury_entry(user.user_id, entry_id)
    return {"status": "ok", "removed": entry_id}


@app.get("/treasury/export.csv")
@limiter.limit("20/minute")
async def export_treasury_csv(
    request: Request,
    entry_type: Optional[str] = Query(None, alias="type"),
    month: Optional[str] = None,
    user: SessionContext = Depends(get_current_user),
    repo: SupabaseRepository = Depends(get_repository),
):
    entries = filter_treasury(repo.list_treasury(user.user_id), entry_type, month)
    logger.info(f"[EXPORT] CSV tesouraria: {len(entries)} movimento(s)")
    return _download(csv_bytes(TREASURY_HEADERS, treasury_rows(entries)), CSV_MEDIA_TYPE, "tesouraria", "csv")


# ============================================================
# ADMIN
# ============================================================

@app.get("/admin/contact-messages")
@limiter.limit("30/minute")
async def admin_contact_messages(
    request: Request,
    user: SessionContext = Depends(require_admin),
    repo: SupabaseRepository = Depends(get_repository),
):
    messages = repo.list_contact_messages()
    return {
        "messages": [m.to_dict() for m in messages],
        "total": len(messages),
        "unread": sum(1 for m in messages if not m.read),
    }


@app.post("/admin/contact-messages/{message_id}/read")
@limiter.limit("30/minute")
async def admin_mark_message_read(
    message_id: str,
    request: Request,
    user: SessionContext = Depends(require_admin),
    repo: SupabaseRepository = Depends(get_repository),
):
    return repo.mark_contact_message_read(message_id).to_dict()


@app.get("/admin/logs")
@limiter.limit("60/minute")
async def admin_logs(
    request: Request,
    limit: int = 1000,
    area: Optional[str] = None,
    level: Optional[str] = None,
    search: Optional[str] = None,
    since_id: int = 0,
    user: SessionContext = Depends(require_admin),
):
    """
    Logs em memória para monitorização remota (apenas admin).

    Params:
        limit: máx entries (default 1000)
        area: área da mensagem (DOSSIERS, CRONOLOGIA, EXPORT, AUTH, ...)
        level: nível mínimo (INFO, WARNING, ERROR)
        search: filtrar por texto (case-insensitive)
        since_id: só logs com seq > since_id (para polling incremental)
    """
    try:
        logs = _log_buffer.query(limit=limit, area=area, min_level=level, search=search, since_seq=since_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {
        "count": len(logs),
        "areas": _log_buffer.area_counts(),
        "logs": [entry.to_dict() for entry in logs],
    }
