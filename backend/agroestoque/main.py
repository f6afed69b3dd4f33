import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .db import init_db
from .api.routers import (
    health, auth, companias, usuarios, produtos, fornecedores, fazendas, talhoes, entradas, saidas, estoque, dashboard,
)
from .application.errors import (
    EstoqueAgricolaError, ValidacaoError, NaoEncontradoError, PermissaoNegadaError,
    EstoqueInsuficienteError, ReversaoImpossivelError, TransacaoError,
)
from .infrastructure.logging_config import setup_logging
from .config import settings as app_settings

# Configurar logging ao iniciar a aplicação
setup_logging()
logger = logging.getLogger(__name__)

# Inicializar BD (não falhar se a conexão ainda não estiver configurada)
try:
    init_db()
except Exception as e:
    logger.warning("Não foi possível inicializar o banco de dados: %s", e)

app = FastAPI(
    title="AWG Stock Manager - Estoque Agrícola",
    version="0.1.0",
    description="Gestão de estoque agrícola multiempresa com custo médio ponderado",
    docs_url="/docs" if app_settings.env == "dev" else None,
    redoc_url="/redoc" if app_settings.env == "dev" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
)

# Headers de segurança HTTP
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    # HSTS só em produção com HTTPS
    if app_settings.env == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response


_STATUS = {
    ValidacaoError: 400,
    EstoqueInsuficienteError: 400,
    PermissaoNegadaError: 403,
    NaoEncontradoError: 404,
    ReversaoImpossivelError: 409,
    TransacaoError: 500,
}


@app.exception_handler(EstoqueAgricolaError)
async def domain_error_handler(request: Request, exc: EstoqueAgricolaError):
    """Única tradução de erros de domínio para HTTP."""
    status_code = next((s for cls, s in _STATUS.items() if isinstance(exc, cls)), 400)
    body = {"detail": exc.message}
    if isinstance(exc, ValidacaoError) and exc.campos:
        body["campos"] = exc.campos
    if isinstance(exc, (EstoqueInsuficienteError, ReversaoImpossivelError)):
        body["disponivel"] = float(exc.disponivel)
    if status_code >= 500:
        logger.error("%s %s -> %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=body)


app.include_router(health.router)
app.include_router(auth.router)
app.include_router(companias.router)
app.include_router(usuarios.router)
app.include_router(produtos.router)
app.include_router(fornecedores.router)
app.include_router(fazendas.router)
app.include_router(talhoes.router)
app.include_router(entradas.router)
app.include_router(saidas.router)
app.include_router(estoque.router)
app.include_router(dashboard.router)
