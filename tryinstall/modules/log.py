import logging
import os
from logging.handlers import RotatingFileHandler
from datetime import datetime

# -------------------------
# Configuração inicial
# -------------------------
LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_root_logger = logging.getLogger("tryinstall")
_root_logger.setLevel(logging.DEBUG)  # captura tudo


class ColorFormatter(logging.Formatter):
    """Formata mensagens com cores para o console"""
    COLORS = {
        logging.DEBUG: "\033[36m",   # ciano
        logging.INFO: "\033[32m",    # verde
        logging.WARNING: "\033[33m", # amarelo
        logging.ERROR: "\033[31m",   # vermelho
        logging.CRITICAL: "\033[41m" # fundo vermelho
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.RESET)
        ts = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        module = f"[{record.name}]" if record.name != "tryinstall" else ""
        msg = super().format(record)
        return f"{color}[{ts}] {record.levelname.lower():<8}{module}{self.RESET} {msg}"


def setup(log_dir: str | None = None):
    """
    Configura handlers globais (console + arquivo rotativo).
    Chamado uma vez pelo CLI; importar o módulo não toca no disco.
    """
    if _root_logger.handlers:
        return  # já configurado

    # Console
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(ColorFormatter("%(message)s"))
    _root_logger.addHandler(ch)

    # Arquivo
    if not log_dir:
        return
    os.makedirs(log_dir, exist_ok=True)
    logfile = os.path.join(log_dir, "tryinstall.log")

    fh = RotatingFileHandler(logfile, maxBytes=10 * 1024 * 1024, backupCount=5)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
        "%Y-%m-%d %H:%M:%S"
    ))
    _root_logger.addHandler(fh)


# -------------------------
# API pública
# -------------------------
def get_logger(name: str = "tryinstall"):
    """Obtém sub-logger (ex.: log.get_logger("provider"))"""
    return _root_logger.getChild(name)


def set_level(level: str):
    """Altera nível dos handlers de console (o arquivo sempre recebe debug)"""
    lvl = LEVELS.get(level.lower())
    if lvl is None:
        raise ValueError(f"Nível inválido: {level}")
    for handler in _root_logger.handlers:
        if not isinstance(handler, RotatingFileHandler):
            handler.setLevel(lvl)


# Atalho simples (sem precisar chamar get_logger)
def debug(msg, *args, **kwargs): _root_logger.debug(msg, *args, **kwargs)
