from __future__ import annotations

import pytest

from tryinstall.modules import config, manifest
from tryinstall.modules.errors import RuntimeCommandError
from tryinstall.modules.features import Failure, Success
from tryinstall.modules.provider import DependencyProvider
from tryinstall.modules.runtime import BundleState, ModuleHandle, ModuleRuntime


IDENTITY_CLAUSE = (
    "Unable to resolve root: missing requirement [root] osgi.identity;"
    " osgi.identity={feature}; type=karaf.feature; version=\"[2.19.11,2.19.11]\";"
    " filter:=\"(&(osgi.identity={feature})(type=karaf.feature)(version>=2.19.11)(version<=2.19.11))\""
)


def package_failure(package: str, version: str, upper: str = "99.0.0", feature: str = "test-io") -> str:
    """Mensagem no formato do resolver do Karaf, com a causa de pacote mais interna por último."""
    return (
        IDENTITY_CLAUSE.format(feature=feature)
        + f" [caused by: Unable to resolve {feature}/2.19.11: missing requirement [{feature}/2.19.11] osgi.identity;"
        " osgi.identity=platform-io-impl; type=osgi.bundle; version=\"[2.19.11,2.19.11]\"; resolution:=mandatory"
        " [caused by: Unable to resolve platform-io-impl/2.19.11: missing requirement"
        " [platform-io-impl/2.19.11] osgi.wiring.package;"
        f" filter:=\"(&(osgi.wiring.package={package})(version>={version})(!(version>={upper})))\"]]"
    )


class FakeHandle(ModuleHandle):
    """
    Bundle em memória. Cada comando muda o estado depois de `lag` consultas;
    `stuck` lista comandos que nunca chegam ao estado final.
    """

    TARGETS = {
        "start": BundleState.ACTIVE,
        "stop": BundleState.RESOLVED,
        "update": BundleState.INSTALLED,
    }

    def __init__(self, runtime: "FakeRuntime", location: str):
        self.runtime = runtime
        self.location = location
        self._state = BundleState.INSTALLED
        self._pending = None
        self._lag = 0
        self.polls = 0
        self.manifests = []

    def state(self):
        self.polls += 1
        if self._pending is not None:
            if self._lag <= 0:
                self._state, self._pending = self._pending, None
            else:
                self._lag -= 1
        return self._state

    def _command(self, name):
        self.runtime.calls.append(name)
        if name in self.runtime.failing:
            raise RuntimeCommandError(f"{name} recusado")
        if name in self.runtime.stuck:
            self._pending = None
            self._state = BundleState.STARTING if name == "start" else BundleState.STOPPING
            return
        self._pending = self.TARGETS[name]
        self._lag = self.runtime.lag

    def start(self):
        self._command("start")

    def stop(self):
        self._command("stop")

    def update(self):
        self.manifests.append(manifest.read_manifest(self.location_path()))
        self._command("update")

    def location_path(self):
        return self.location[len("file://"):]


class FakeRuntime(ModuleRuntime):
    def __init__(self, lag: int = 0, stuck=(), failing=()):
        self.lag = lag
        self.stuck = set(stuck)
        self.failing = set(failing)
        self.handles = {}
        self.calls = []

    def install(self, location):
        self.calls.append("install")
        if "install" in self.failing:
            raise RuntimeCommandError("install recusado")
        handle = FakeHandle(self, location)
        self.handles[location] = handle
        return handle

    def lookup(self, location):
        return self.handles.get(location)


class FakeInstaller:
    """Devolve uma Failure por mensagem da fila e depois Success."""

    def __init__(self, messages=()):
        self.messages = list(messages)
        self.calls = []

    def install(self, feature_id):
        self.calls.append(feature_id)
        if self.messages:
            return Failure(feature_id, self.messages.pop(0))
        return Success(feature_id)


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def workspace(tmp_path):
    return str(tmp_path / "data" / "tmp" / "tryinstall")


@pytest.fixture
def make_provider(workspace):
    ticks = iter(range(1_000, 1_000_000))

    def factory(rt, **kwargs):
        kwargs.setdefault("defaults", manifest.ManifestDefaults(build_jdk="17.0.2"))
        kwargs.setdefault("clock", lambda: next(ticks))
        kwargs.setdefault("sleep", lambda _: None)
        return DependencyProvider(rt, kwargs.pop("workspace_dir", workspace), **kwargs)

    return factory


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    path = tmp_path / "config.yml"
    monkeypatch.setenv("TRYINSTALL_CONFIG", str(path))
    monkeypatch.delenv("KARAF_HOME", raising=False)
    path.write_text("{}\n", encoding="utf-8")
    config.load_config()
    yield path
    monkeypatch.delenv("TRYINSTALL_CONFIG")
    config.load_config()
