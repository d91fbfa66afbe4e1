#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
resolve.py — Laço de resolução do tryinstall

ATTEMPTING -> (falha) DIAGNOSING -> PATCHING -> ATTEMPTING ... -> DONE

Não há limite de iterações: cada patch bem sucedido acrescenta um pacote
nunca visto, então o laço termina por sucesso, por pacote repetido
(RepeatCapability) ou por falta de cláusula extraível (ExtractionFailure).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from tryinstall.modules import log
from tryinstall.modules.diagnostic import Capability, extract_capability
from tryinstall.modules.errors import RepeatCapability, TryInstallError
from tryinstall.modules.features import InstallOutcome
from tryinstall.modules.provider import DependencyProvider

logger = log.get_logger("resolve")


class SessionState(str, Enum):
    ATTEMPTING = "ATTEMPTING"
    DIAGNOSING = "DIAGNOSING"
    PATCHING = "PATCHING"
    DONE = "DONE"


@dataclass
class ResolveResult:
    feature_id: str
    ok: bool
    state: SessionState = SessionState.DONE
    error: Optional[TryInstallError] = None
    exports: Tuple[Capability, ...] = field(default_factory=tuple)
    attempts: int = 0

    def as_dict(self) -> dict:
        return {
            "feature": self.feature_id,
            "ok": self.ok,
            "attempts": self.attempts,
            "exports": [str(c) for c in self.exports],
            "error": str(self.error) if self.error else None,
        }


class ResolveSession:
    """Uma sessão: tenta instalar, e a cada falha exporta o pacote ausente."""

    def __init__(self, installer, provider: DependencyProvider):
        self.installer = installer
        self.provider = provider
        self.state = SessionState.ATTEMPTING

    def _enter(self, state: SessionState):
        logger.debug("[Sessão] %s -> %s", self.state.value, state.value)
        self.state = state

    def _done(self, feature_id: str, attempts: int, error: TryInstallError | None = None) -> ResolveResult:
        self._enter(SessionState.DONE)
        return ResolveResult(feature_id, ok=error is None, error=error,
                             exports=self.provider.exports, attempts=attempts)

    def run(self, feature_id: str) -> ResolveResult:
        attempts = 0
        self.state = SessionState.ATTEMPTING
        while True:
            attempts += 1
            logger.debug("[Tentativa %d] Instalando '%s'", attempts, feature_id)
            outcome: InstallOutcome = self.installer.install(feature_id)
            if outcome.ok:
                logger.info("Feature '%s' instalada após %d tentativa(s)", feature_id, attempts)
                return self._done(feature_id, attempts)

            logger.debug("[Tentativa %d] Ainda faltam dependências", attempts)
            self._enter(SessionState.DIAGNOSING)
            try:
                capability = extract_capability(outcome.raw_message)
            except TryInstallError as e:
                return self._done(feature_id, attempts, e)

            if capability in self.provider.exports:
                return self._done(feature_id, attempts, RepeatCapability(
                    f"Exportar o pacote {capability} não satisfez a dependência",
                    capability=capability,
                    raw_message=outcome.raw_message,
                ))

            self._enter(SessionState.PATCHING)
            try:
                self.provider.add_capability_and_reload(capability)
            except TryInstallError as e:
                return self._done(feature_id, attempts, e)
            logger.info("Pacote %s exportado pelo jar fictício", capability)
            self._enter(SessionState.ATTEMPTING)


__all__ = ["SessionState", "ResolveResult", "ResolveSession"]
