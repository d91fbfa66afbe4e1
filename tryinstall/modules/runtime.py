#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
runtime.py — Runtime de módulos (bundles OSGi do Karaf)

- Interface abstrata ModuleRuntime / ModuleHandle usada pelo provider
- Estados de bundle (BundleState)
- Implementação KarafRuntime sobre o MBean de bundles via Jolokia
- Versão da JVM do container (para o Build-Jdk do manifesto)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from tryinstall.modules import log
from tryinstall.modules.errors import RuntimeCommandError
from tryinstall.modules.jolokia import JolokiaClient, JolokiaError

logger = log.get_logger("runtime")

BUNDLE_MBEAN = "org.apache.karaf:type=bundle,name=root"
RUNTIME_MBEAN = "java.lang:type=Runtime"

# Colunas possíveis da localização na tabela Bundles (varia por versão do Karaf)
_LOCATION_KEYS = ("Location", "Update Location")


class BundleState(str, Enum):
    INSTALLED = "INSTALLED"
    RESOLVED = "RESOLVED"
    STARTING = "STARTING"
    ACTIVE = "ACTIVE"
    STOPPING = "STOPPING"
    UNINSTALLED = "UNINSTALLED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value) -> "BundleState":
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN


class ModuleHandle(ABC):
    """Objeto vivo do runtime para um bundle instalado."""

    location: str

    @abstractmethod
    def state(self) -> BundleState: ...

    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def update(self) -> None:
        """Recarrega o bundle a partir da sua localização."""


class ModuleRuntime(ABC):
    @abstractmethod
    def install(self, location: str) -> ModuleHandle: ...

    @abstractmethod
    def lookup(self, location: str) -> Optional[ModuleHandle]: ...


# ---------------------------------------------------------------------
# Karaf via Jolokia
# ---------------------------------------------------------------------

class KarafBundle(ModuleHandle):
    def __init__(self, runtime: "KarafRuntime", bundle_id: str, location: str):
        self.runtime = runtime
        self.bundle_id = str(bundle_id)
        self.location = location

    def state(self) -> BundleState:
        row = self.runtime.bundles().get(self.bundle_id)
        if row is None:
            return BundleState.UNINSTALLED
        return BundleState.parse(row.get("State"))

    def start(self) -> None:
        self.runtime._exec("start(java.lang.String)", self.bundle_id)

    def stop(self) -> None:
        self.runtime._exec("stop(java.lang.String)", self.bundle_id)

    def update(self) -> None:
        self.runtime._exec("update(java.lang.String,java.lang.String)", self.bundle_id, self.location)

    def __repr__(self) -> str:
        return f"KarafBundle(id={self.bundle_id}, location={self.location!r})"


class KarafRuntime(ModuleRuntime):
    def __init__(self, client: JolokiaClient):
        self.client = client

    def _exec(self, operation: str, *arguments):
        try:
            return self.client.execute(BUNDLE_MBEAN, operation, *arguments)
        except JolokiaError as e:
            raise RuntimeCommandError(f"{operation} falhou: {e}") from e

    def bundles(self) -> dict:
        """Tabela Bundles indexada por ID (string)."""
        try:
            table = self.client.read(BUNDLE_MBEAN, "Bundles") or {}
        except JolokiaError as e:
            raise RuntimeCommandError(f"Leitura de Bundles falhou: {e}") from e
        return {str(k): v for k, v in table.items()}

    def install(self, location: str) -> KarafBundle:
        bundle_id = self._exec("install(java.lang.String)", location)
        logger.debug("Bundle %s instalado a partir de %s", bundle_id, location)
        return KarafBundle(self, bundle_id, location)

    def lookup(self, location: str) -> Optional[KarafBundle]:
        for bundle_id, row in self.bundles().items():
            if any(row.get(k) == location for k in _LOCATION_KEYS):
                return KarafBundle(self, bundle_id, location)
        return None

    def jvm_version(self) -> str:
        try:
            return str(self.client.read(RUNTIME_MBEAN, "VmVersion"))
        except JolokiaError as e:
            raise RuntimeCommandError(f"Leitura da versão da JVM falhou: {e}") from e


__all__ = [
    "BundleState", "ModuleHandle", "ModuleRuntime", "KarafBundle", "KarafRuntime",
    "BUNDLE_MBEAN",
]
