import os
import shutil
from pathlib import Path

from tryinstall.modules import log


# -------------------------
# Sistema de arquivos
# -------------------------
def clean_dir(path: str):
    """
    Remove diretório se existir e recria vazio.
    Symlink no lugar do diretório é removido sem seguir o alvo.
    """
    if os.path.islink(path) or os.path.isfile(path):
        log.debug("Removendo '%s'", path)
        os.remove(path)
    elif os.path.isdir(path):
        log.debug("Limpando diretório '%s'", path)
        shutil.rmtree(path)
    os.makedirs(path)


# -------------------------
# Helpers diversos
# -------------------------
def file_uri(path: str) -> str:
    """Converte caminho local em URI file:/ (localização do bundle)"""
    return Path(path).absolute().as_uri()
