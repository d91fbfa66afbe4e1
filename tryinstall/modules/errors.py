#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
errors.py — Hierarquia de erros do tryinstall

Todo erro desta hierarquia encerra a sessão de resolução. Não existe
recuperação local: o único ponto com novas tentativas é a espera limitada
de estado (modules/wait.py).
"""

from __future__ import annotations
from typing import Optional


class TryInstallError(Exception):
    """Erro base de uma sessão tryinstall"""
    pass


class ConfigError(TryInstallError):
    """Configuração insuficiente (ex.: karaf_home não definido)"""
    pass


class ExtractionFailure(TryInstallError):
    """Nenhum filtro de pacote ausente encontrado na mensagem de falha"""

    def __init__(self, message: str, raw_message: str = ""):
        super().__init__(message)
        self.raw_message = raw_message


class RepeatCapability(TryInstallError):
    """O mesmo pacote/versão voltou a faltar depois de já ter sido exportado"""

    def __init__(self, message: str, capability=None, raw_message: str = ""):
        super().__init__(message)
        self.capability = capability
        self.raw_message = raw_message


class WorkspaceFailure(TryInstallError):
    """Não foi possível limpar ou recriar o diretório de trabalho"""
    pass


class ManifestConflict(TryInstallError):
    """Atributo extra colide com um atributo fixo do manifesto"""
    pass


class LifecycleFailure(TryInstallError):
    """
    O módulo não chegou ao estado esperado.

    `step` identifica a transição travada: install, resolve, update ou start.
    """

    def __init__(self, message: str, step: Optional[str] = None, attempts: Optional[int] = None):
        super().__init__(f"[{step}] {message}" if step else message)
        self.step = step
        self.attempts = attempts


class RuntimeCommandError(TryInstallError):
    """Um comando enviado ao runtime de módulos falhou (transporte ou resposta)"""
    pass


__all__ = [
    "TryInstallError", "ConfigError", "ExtractionFailure", "RepeatCapability",
    "WorkspaceFailure", "ManifestConflict", "LifecycleFailure", "RuntimeCommandError",
]
