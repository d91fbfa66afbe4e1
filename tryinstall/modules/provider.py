#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
provider.py — Provedor de dependências fictícias

Mantém um único jar sem classes (mock.jar) instalado como bundle no Karaf,
cujo manifesto declara exportar os pacotes que faltaram na resolução. Fingir
que as dependências existem deixa a resolução da feature seguir adiante, ao
custo de deixar a feature instalada inutilizável.

Ciclo:
- initialize(): limpa o workspace, escreve o jar vazio, instala e ativa o bundle
- add_capability_and_reload(c): acrescenta o pacote, reescreve o jar e
  recarrega o bundle (stop -> RESOLVED, update -> INSTALLED, start -> ACTIVE)
"""

from __future__ import annotations
import os
import time
from typing import Callable, List, Optional, Tuple

from tryinstall.modules import log, manifest, utils
from tryinstall.modules.diagnostic import Capability
from tryinstall.modules.errors import LifecycleFailure, RuntimeCommandError, WorkspaceFailure
from tryinstall.modules.runtime import BundleState, ModuleHandle, ModuleRuntime
from tryinstall.modules.wait import DEFAULT_ATTEMPTS, DEFAULT_INTERVAL, wait_for_state

logger = log.get_logger("provider")

JAR_NAME = "mock.jar"


def _now_ms() -> int:
    return int(time.time() * 1000)


class DependencyProvider:
    def __init__(
        self,
        runtime: ModuleRuntime,
        workspace_dir: str,
        defaults: Optional[manifest.ManifestDefaults] = None,
        jar_name: str = JAR_NAME,
        poll_interval: float = DEFAULT_INTERVAL,
        poll_attempts: int = DEFAULT_ATTEMPTS,
        clock: Callable[[], int] = _now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.runtime = runtime
        self.workspace_dir = os.path.abspath(workspace_dir)
        self.jar_path = os.path.join(self.workspace_dir, jar_name)
        self.location = utils.file_uri(self.jar_path)
        self.defaults = defaults or manifest.ManifestDefaults()
        self.poll_interval = poll_interval
        self.poll_attempts = poll_attempts
        self.clock = clock
        self.sleep = sleep
        self._exports: List[Capability] = []

    @property
    def exports(self) -> Tuple[Capability, ...]:
        return tuple(self._exports)

    # -----------------------------------------------------------------
    # Jar
    # -----------------------------------------------------------------

    def write_jar(self, exports=None) -> dict:
        """Reescreve o jar inteiro a partir de `exports` (padrão: os exports atuais)."""
        exports = self._exports if exports is None else exports
        extra = {}
        if exports:
            extra[manifest.EXPORT_PACKAGE] = manifest.export_declaration(exports)
        attrs = manifest.compose_attributes(self.defaults, extra, self.clock())
        manifest.write_jar(self.jar_path, attrs)
        return attrs

    # -----------------------------------------------------------------
    # Bundle
    # -----------------------------------------------------------------

    def _wait(self, handle: ModuleHandle, expected: BundleState, step: str, reason: str):
        wait_for_state(handle.state, expected, reason, step=step,
                       interval=self.poll_interval, max_attempts=self.poll_attempts,
                       sleep=self.sleep)

    def _command(self, step: str, command: Callable[[], object]):
        try:
            return command()
        except RuntimeCommandError as e:
            raise LifecycleFailure(str(e), step=step) from e

    def _handle(self) -> ModuleHandle:
        handle = self._command("resolve", lambda: self.runtime.lookup(self.location))
        if handle is None:
            raise LifecycleFailure(
                f"Bundle do jar fictício não está instalado: {self.location}", step="resolve")
        return handle

    def _refresh(self, handle: ModuleHandle):
        self._command("resolve", handle.stop)
        self._wait(handle, BundleState.RESOLVED, "resolve",
                   "Durante o refresh, o bundle não parou a tempo")
        self._command("update", handle.update)
        self._wait(handle, BundleState.INSTALLED, "update",
                   "Durante o refresh, o bundle não foi atualizado a tempo")
        self._command("start", handle.start)
        self._wait(handle, BundleState.ACTIVE, "start",
                   "Durante o refresh, o bundle não iniciou a tempo")

    def _init_bundle(self):
        handle = self._command("install", lambda: self.runtime.lookup(self.location))
        if handle is None:
            logger.debug("Bundle '%s' não existe; instalando", self.location)
            handle = self._command("install", lambda: self.runtime.install(self.location))
            self._command("install", handle.start)
            self._wait(handle, BundleState.ACTIVE, "install",
                       "O tryinstall não roda sem o jar fictício instalado e ativo")
        else:
            logger.debug("Bundle '%s' já existe; atualizando", self.location)
            self._refresh(handle)

    # -----------------------------------------------------------------
    # API pública
    # -----------------------------------------------------------------

    def initialize(self):
        """Limpa e recria o workspace, escreve o jar vazio e ativa o bundle."""
        logger.debug("Preparando workspace '%s'", self.workspace_dir)
        try:
            utils.clean_dir(self.workspace_dir)
        except OSError as e:
            raise WorkspaceFailure(f"Não foi possível preparar o workspace {self.workspace_dir}: {e}") from e
        self._exports.clear()
        try:
            self.write_jar()
        except OSError as e:
            raise WorkspaceFailure(f"Não foi possível escrever {self.jar_path}: {e}") from e
        self._init_bundle()

    def add_capability_and_reload(self, capability: Capability):
        """Exporta `capability` (já deduplicada pelo chamador) e recarrega o bundle."""
        logger.debug("Fornecendo pacote %s", capability)
        try:
            self.write_jar([*self._exports, capability])
        except OSError as e:
            raise WorkspaceFailure(f"Não foi possível reescrever {self.jar_path}: {e}") from e
        self._exports.append(capability)
        self._refresh(self._handle())


__all__ = ["DependencyProvider", "JAR_NAME"]
