#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
config.py — Módulo de configuração do tryinstall

- Suporta $TRYINSTALL_CONFIG > ~/.config/tryinstall/config.yml > /etc/tryinstall/config.yml > defaults
- karaf_home cai para $KARAF_HOME quando não configurado
- Permite leitura, escrita, reset e listagem completa da config
- Deriva o diretório de trabalho (<karaf_home>/data/tmp/tryinstall)
"""

import os
import yaml

from tryinstall.modules import log
from tryinstall.modules.errors import ConfigError

logger = log.get_logger("config")

# Caminhos padrão
USER_CONFIG = os.path.expanduser("~/.config/tryinstall/config.yml")
SYSTEM_CONFIG = "/etc/tryinstall/config.yml"

WORKSPACE_NAME = "tryinstall"

# Valores padrão (completo)
DEFAULTS = {
    # Karaf
    "karaf_home": None,
    "workspace_dir": None,
    "jar_name": "mock.jar",

    # Jolokia (ponte HTTP/JMX do Karaf)
    "jolokia_url": "http://localhost:8181/jolokia",
    "jolokia_user": "karaf",
    "jolokia_password": "karaf",
    "http_timeout": 30,
    "install_timeout": 600,  # instalação de feature pode demorar

    # Espera de estado dos bundles
    "poll_interval": 0.1,  # segundos
    "poll_attempts": 20,

    # Logs
    "log_dir": os.path.expanduser("~/.cache/tryinstall/log"),

    # Manifesto do jar fictício
    "built_by": "feature-try-install",
    "bundle_name": "Dependency Provider",
    "bundle_symbolic_name": "dependency-provider",
    "bundle_description": "Pretends to provide dependencies",
    "build_jdk": None,  # None = pergunta ao runtime
}

_config = DEFAULTS.copy()


def _load_from(path: str) -> dict:
    """Carrega configuração de um arquivo YAML se existir."""
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Config ignorada (%s): %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def load_config() -> dict:
    """Carrega config seguindo a hierarquia: env > user > system > defaults"""
    global _config

    # 1. Variável de ambiente
    env_path = os.getenv("TRYINSTALL_CONFIG")
    if env_path and os.path.exists(env_path):
        _config = {**DEFAULTS, **_load_from(env_path)}
        return _config

    # 2. Configuração do usuário
    if os.path.exists(USER_CONFIG):
        _config = {**DEFAULTS, **_load_from(USER_CONFIG)}
        return _config

    # 3. Configuração global
    if os.path.exists(SYSTEM_CONFIG):
        _config = {**DEFAULTS, **_load_from(SYSTEM_CONFIG)}
        return _config

    # 4. Defaults
    _config = DEFAULTS.copy()
    return _config


def _save(cfg: dict, system: bool = False) -> None:
    """Salva configuração em YAML (usuário ou sistema)."""
    path = SYSTEM_CONFIG if system else (os.getenv("TRYINSTALL_CONFIG") or USER_CONFIG)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f, default_flow_style=False, allow_unicode=True)


def get(key: str, default=None):
    """Obtém valor de uma chave da configuração (com fallback)."""
    if not _config:
        load_config()
    value = _config.get(key)
    if value is None:
        value = DEFAULTS.get(key)
    return default if value is None else value


def set(key: str, value, system: bool = False):
    """Define valor para uma chave e salva em config.yml."""
    if key not in DEFAULTS:
        raise ConfigError(f"Chave desconhecida: {key}")
    cfg = load_config()
    cfg[key] = value
    _save(cfg, system=system)
    _config.update(cfg)


def all() -> dict:
    """Retorna configuração completa (merge de defaults + arquivo carregado)."""
    return load_config()


def reset(system: bool = False):
    """Restaura configuração para os valores padrão."""
    _save(DEFAULTS.copy(), system=system)
    load_config()


def karaf_home() -> str:
    """karaf_home da config ou de $KARAF_HOME; ConfigError se nenhum."""
    home = get("karaf_home") or os.getenv("KARAF_HOME")
    if not home:
        raise ConfigError("karaf_home não configurado (use --karaf-home ou $KARAF_HOME)")
    logger.debug("karaf_home = '%s'", home)
    return home


def workspace_path(home: str | None = None) -> str:
    """
    Diretório de trabalho do jar fictício.
    Ordem: workspace_dir da config > <karaf_home>/data/tmp/tryinstall
    """
    explicit = get("workspace_dir")
    if explicit and home is None:
        return os.path.abspath(os.path.expanduser(explicit))
    base = home or karaf_home()
    return os.path.abspath(os.path.join(base, "data", "tmp", WORKSPACE_NAME))


# Carrega config logo no import
load_config()
