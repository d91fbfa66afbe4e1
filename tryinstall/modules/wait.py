"""
Espera limitada por estado de módulo.

As transições de estado do runtime são assíncronas em relação aos comandos
(start/stop/update); aqui só fazemos polling com intervalo fixo até um número
máximo de tentativas.
"""

from __future__ import annotations
import time
from typing import Callable

from tryinstall.modules import log
from tryinstall.modules.errors import LifecycleFailure

logger = log.get_logger("wait")

DEFAULT_INTERVAL = 0.1
DEFAULT_ATTEMPTS = 20


def wait_for_state(
    query: Callable[[], object],
    expected: object,
    reason: str,
    step: str | None = None,
    interval: float = DEFAULT_INTERVAL,
    max_attempts: int = DEFAULT_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Consulta `query()` até retornar `expected`, no máximo `max_attempts` vezes.
    Dorme `interval` segundos entre consultas (nunca depois da última).
    Levanta LifecycleFailure(reason) se o estado não for atingido.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts inválido: {max_attempts}")

    state = None
    for attempt in range(1, max_attempts + 1):
        state = query()
        if state == expected:
            logger.debug("Estado %s atingido na tentativa %d", expected, attempt)
            return state
        if attempt < max_attempts:
            sleep(interval)

    logger.debug("Estado %s não atingido após %d tentativas (último: %s)", expected, max_attempts, state)
    raise LifecycleFailure(reason, step=step, attempts=max_attempts)
