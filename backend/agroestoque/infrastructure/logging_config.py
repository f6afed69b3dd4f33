"""
Configuração de logging da aplicação
Cria arquivos de log por dia na pasta configurada (logs/ por padrão)
"""
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from pathlib import Path

from ..config import settings

def setup_logging(log_dir: str | None = None, level: str | None = None):
    """Configura o logging com arquivo diário e console"""

    log_path = Path(log_dir or settings.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # Nome do arquivo com a data atual (YYYY-MM-DD)
    today = datetime.now().strftime("%Y-%m-%d")
    log_file = log_path / f"agroestoque_{today}.log"

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Evita handlers duplicados em recargas
    root_logger.handlers.clear()

    # maxBytes=10MB, backupCount=5
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(log_format, date_format))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger("agroestoque").setLevel(log_level)

    # Razão de estoque: registra tudo, inclusive DEBUG das contas de custo médio
    logging.getLogger("agroestoque.application.services_estoque").setLevel(logging.DEBUG)

    # SQLAlchemy só com warnings e erros
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)

    logging.info("Logging configurado. Arquivo: %s", log_file)

    return root_logger

def get_logger(name: str = None):
    """Obtém um logger sob o namespace da aplicação"""
    if name:
        return logging.getLogger(f"agroestoque.{name}")
    return logging.getLogger("agroestoque")
