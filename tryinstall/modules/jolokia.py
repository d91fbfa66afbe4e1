#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
jolokia.py — Cliente mínimo para a ponte HTTP/JMX (Jolokia) do Karaf

- exec de operações e read de atributos de MBeans via POST JSON
- Autenticação básica (usuário/senha do Karaf)
- Erros HTTP, de conexão e respostas com status != 200 viram JolokiaError,
  com o texto de erro remoto preservado (é ali que vêm os diagnósticos do resolver)
"""

from __future__ import annotations
from typing import Any, Optional

import requests

from tryinstall.modules import log

logger = log.get_logger("jolokia")


class JolokiaError(Exception):
    """Falha de transporte ou erro reportado pelo agente Jolokia"""

    def __init__(self, message: str, error_type: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.error_type = error_type
        self.status = status


def _strip_error_type(error: str, error_type: Optional[str]) -> str:
    # Jolokia devolve "java.lang.Exception : <mensagem>"
    if error_type and error.startswith(error_type):
        rest = error[len(error_type):]
        return rest.lstrip(" :")
    return error


class JolokiaClient:
    def __init__(self, url: str, user: str | None = None, password: str | None = None,
                 timeout: float = 30, session: requests.Session | None = None):
        self.url = url.rstrip("/") + "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        if user:
            self.session.auth = (user, password or "")

    def _request(self, payload: dict, timeout: float | None = None) -> Any:
        logger.debug("Jolokia %s %s %s", payload.get("type"), payload.get("mbean"),
                     payload.get("operation") or payload.get("attribute"))
        try:
            r = self.session.post(self.url, json=payload, timeout=timeout or self.timeout)
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as e:
            raise JolokiaError(f"Falha HTTP em {self.url}: {e}") from e
        except ValueError as e:
            raise JolokiaError(f"Resposta inválida de {self.url}: {e}") from e

        status = data.get("status")
        if status != 200:
            error_type = data.get("error_type")
            error = data.get("error") or f"Erro Jolokia (status {status})"
            raise JolokiaError(_strip_error_type(error, error_type), error_type=error_type, status=status)
        return data.get("value")

    def execute(self, mbean: str, operation: str, *arguments, timeout: float | None = None) -> Any:
        """Executa `operation` no MBean e retorna o valor."""
        payload = {"type": "exec", "mbean": mbean, "operation": operation, "arguments": list(arguments)}
        return self._request(payload, timeout=timeout)

    def read(self, mbean: str, attribute: str) -> Any:
        """Lê um atributo do MBean."""
        return self._request({"type": "read", "mbean": mbean, "attribute": attribute})
