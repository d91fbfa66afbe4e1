#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
manifest.py — Manifesto e escrita do jar fictício

- Conjunto fixo de atributos base (ManifestDefaults), injetado pelo chamador
- Composição base + extras + Fti-LastModified, sem colisão de chaves
- Escrita de um jar contendo apenas META-INF/MANIFEST.MF
- Leitura do manifesto de volta (comando show e testes)

Exemplos de Export-Package em bundles reais (uma linha cada, quebradas aqui):

    Export-Package: this.package.exported;also.this.one;version="2.24.0",and.this.one;
    Export-Package: org.codice.ddf.catalog.core.plugin.metacarddeduplication;
      uses:="ddf.catalog,ddf.catalog.data,ddf.catalog.filter";
      version="16.0.0"
"""

from __future__ import annotations
import zipfile
from dataclasses import dataclass
from typing import Dict, Iterable

from tryinstall.modules import log
from tryinstall.modules.errors import ManifestConflict

logger = log.get_logger("manifest")

MANIFEST_ENTRY = "META-INF/MANIFEST.MF"
EXPORT_PACKAGE = "Export-Package"
LAST_MODIFIED = "Fti-LastModified"

# Limite de linha de um manifesto JAR (bytes, sem o CRLF)
MAX_LINE = 72


@dataclass(frozen=True)
class ManifestDefaults:
    """Atributos fixos do manifesto; nada é lido do ambiente do processo."""
    build_jdk: str = "unknown"
    built_by: str = "feature-try-install"
    created_by: str = "feature-try-install"
    bundle_name: str = "Dependency Provider"
    bundle_symbolic_name: str = "dependency-provider"
    bundle_description: str = "Pretends to provide dependencies"
    bundle_version: str = "0"

    def attributes(self) -> Dict[str, str]:
        return {
            "Manifest-Version": "1.0",
            "Build-Jdk": self.build_jdk,
            "Built-By": self.built_by,
            "Created-By": self.created_by,
            "Bundle-Name": self.bundle_name,
            "Bundle-SymbolicName": self.bundle_symbolic_name,
            "Bundle-Description": self.bundle_description,
            "Bundle-ManifestVersion": "2",
            "Bundle-Version": self.bundle_version,
        }


def export_declaration(capabilities: Iterable) -> str:
    """Serializa capabilities como pkg1;version="v1",pkg2;version="v2",..."""
    return ",".join(c.export_clause() for c in capabilities)


def compose_attributes(defaults: ManifestDefaults, extra: Dict[str, str], timestamp_ms: int) -> Dict[str, str]:
    """
    Base + extra + Fti-LastModified, nessa ordem.
    Chaves de `extra` não podem repetir a base nem Fti-LastModified.
    """
    base = defaults.attributes()
    reserved = set(base) | {LAST_MODIFIED}
    conflicts = sorted(k for k in extra if k in reserved)
    if conflicts:
        raise ManifestConflict(f"Atributos duplicados no manifesto: {', '.join(conflicts)}")
    attrs = dict(base)
    attrs.update(extra)
    attrs[LAST_MODIFIED] = str(timestamp_ms)
    return attrs


def _wrap(line: str) -> list[str]:
    """Quebra uma linha em pedaços de até 72 bytes; continuações começam com espaço."""
    out, current, size = [], "", 0
    for ch in line:
        n = len(ch.encode("utf-8"))
        if size + n > MAX_LINE:
            out.append(current)
            current, size = " ", 1
        current += ch
        size += n
    out.append(current)
    return out


def render_manifest(attributes: Dict[str, str]) -> bytes:
    """Gera o texto do MANIFEST.MF (Manifest-Version sempre primeiro)."""
    lines = []
    ordered = sorted(attributes.items(), key=lambda kv: kv[0] != "Manifest-Version")
    for key, value in ordered:
        lines.extend(_wrap(f"{key}: {value}"))
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


def parse_manifest(data: bytes) -> Dict[str, str]:
    """Lê a seção principal de um MANIFEST.MF, juntando as linhas de continuação."""
    attrs: Dict[str, str] = {}
    last = None
    for raw in data.decode("utf-8").splitlines():
        if not raw:
            break  # fim da seção principal
        if raw.startswith(" ") and last is not None:
            attrs[last] += raw[1:]
            continue
        key, _, value = raw.partition(": ")
        attrs[key] = value
        last = key
    return attrs


def write_jar(path: str, attributes: Dict[str, str]) -> None:
    """Escreve o jar em `path`, sobrescrevendo o que existir."""
    logger.debug("Escrevendo jar '%s'", path)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(MANIFEST_ENTRY, render_manifest(attributes))


def read_manifest(path: str) -> Dict[str, str]:
    """Retorna os atributos principais do manifesto do jar em `path`."""
    with zipfile.ZipFile(path, "r") as zf:
        return parse_manifest(zf.read(MANIFEST_ENTRY))


__all__ = [
    "ManifestDefaults", "MANIFEST_ENTRY", "EXPORT_PACKAGE", "LAST_MODIFIED",
    "export_declaration", "compose_attributes", "render_manifest",
    "parse_manifest", "write_jar", "read_manifest",
]
