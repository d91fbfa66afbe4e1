"""
Instalação de features do Karaf.

O resultado é um InstallOutcome (Success | Failure); a falha carrega só o
texto bruto, que é o que o extrator de diagnóstico consome.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from tryinstall.modules import log
from tryinstall.modules.jolokia import JolokiaClient, JolokiaError

logger = log.get_logger("features")

FEATURES_MBEAN = "org.apache.karaf:type=feature,name=root"


@dataclass(frozen=True)
class Success:
    feature_id: str
    ok = True


@dataclass(frozen=True)
class Failure:
    feature_id: str
    raw_message: str
    ok = False


InstallOutcome = Union[Success, Failure]


class FeatureInstaller:
    """Chama FeaturesService.installFeature(String) via Jolokia."""

    def __init__(self, client: JolokiaClient, timeout: float | None = None):
        self.client = client
        self.timeout = timeout

    def install(self, feature_id: str) -> InstallOutcome:
        logger.debug("Instalando feature '%s'", feature_id)
        try:
            self.client.execute(FEATURES_MBEAN, "installFeature(java.lang.String)", feature_id,
                                timeout=self.timeout)
        except JolokiaError as e:
            return Failure(feature_id, str(e))
        return Success(feature_id)


__all__ = ["Success", "Failure", "InstallOutcome", "FeatureInstaller", "FEATURES_MBEAN"]
