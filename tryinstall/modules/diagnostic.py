#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
diagnostic.py — Extração do pacote ausente a partir da mensagem de falha

A mensagem de uma instalação de feature que falhou encadeia as causas com
"[caused by: ...]", da requisição mais externa para a mais interna, tudo em
uma linha. Exemplo (quebrado em linhas para leitura):

    Unable to resolve root:
      missing requirement [root] osgi.identity; osgi.identity=test-io;
        type=karaf.feature; version="[2.19.11,2.19.11]";
        filter:="(&(osgi.identity=test-io)(type=karaf.feature)(version>=2.19.11)(version<=2.19.11))"
    [caused by: Unable to resolve test-io/2.19.11:
      missing requirement [test-io/2.19.11] osgi.identity;
        osgi.identity=platform-io-impl; type=osgi.bundle;
        version="[2.19.11,2.19.11]"; resolution:=mandatory
    [caused by: Unable to resolve platform-io-impl/2.19.11:
      missing requirement [platform-io-impl/2.19.11] osgi.wiring.package;
        filter:="(&(osgi.wiring.package=org.apache.commons.lang)(version>=2.6.0)(!(version>=3.0.0)))"]]

Só cláusulas osgi.wiring.package casam com o padrão, e a causa mais interna
vem por último no texto; por isso a primeira ocorrência do padrão é a que
interessa.
"""

from __future__ import annotations
import re
from dataclasses import dataclass

from tryinstall.modules import log
from tryinstall.modules.errors import ExtractionFailure

logger = log.get_logger("diagnostic")

EXPORT_TEMPLATE = '{name};version="{version}"'

# Manter em sincronia com _split_clause()
OSGI_PACKAGE_FILTER = re.compile(
    r'filter:="\(&'
    r"\(osgi\.wiring\.package=[a-zA-Z]+(\.[a-zA-Z0-9_]+)+\)"
    r"\(version>=[0-9]+(\.[0-9]+)+\)"
    r"\(!\(version>=[0-9]+(\.[0-9]+)+\)\)"
    r'\)"'
)

_PACKAGE_KEY = "osgi.wiring.package="
_VERSION_KEY = "version>="


@dataclass(frozen=True)
class Capability:
    """Pacote + versão mínima que o jar fictício declara exportar"""
    package_name: str
    min_version: str

    def export_clause(self) -> str:
        return EXPORT_TEMPLATE.format(name=self.package_name, version=self.min_version)

    def __str__(self) -> str:
        return f"{self.package_name}/{self.min_version}"


def _split_clause(matched: str) -> Capability:
    # str.index levanta ValueError se o padrão e o split divergirem
    start = matched.index(_PACKAGE_KEY) + len(_PACKAGE_KEY)
    name = matched[start:matched.index(")", start)]
    vstart = matched.index(_VERSION_KEY) + len(_VERSION_KEY)
    version = matched[vstart:matched.index(")", vstart)]
    return Capability(name, version)


def find_filter_clause(message: str) -> str | None:
    """Retorna a primeira cláusula filter:= de pacote ausente, ou None."""
    match = OSGI_PACKAGE_FILTER.search(message or "")
    return match.group() if match else None


def extract_capability(message: str) -> Capability:
    """
    Extrai o pacote ausente (nome + versão mínima) da mensagem de falha.

    Levanta ExtractionFailure se nenhuma cláusula de pacote for encontrada.
    """
    clause = find_filter_clause(message)
    if clause is None:
        raise ExtractionFailure(
            "Filtro de pacote ausente não encontrado na mensagem de falha",
            raw_message=message or "",
        )
    capability = _split_clause(clause)
    logger.debug("Cláusula encontrada: %s -> %s", clause, capability)
    return capability


__all__ = [
    "Capability", "OSGI_PACKAGE_FILTER", "EXPORT_TEMPLATE",
    "find_filter_clause", "extract_capability",
]
