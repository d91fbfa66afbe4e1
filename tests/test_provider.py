import os

import pytest

from tryinstall.modules import manifest, utils
from tryinstall.modules.diagnostic import Capability
from tryinstall.modules.errors import LifecycleFailure, WorkspaceFailure
from tryinstall.modules.runtime import BundleState

from conftest import FakeRuntime


def _without_timestamp(attrs):
    return {k: v for k, v in attrs.items() if k != manifest.LAST_MODIFIED}


def test_initialize_writes_empty_jar_and_activates_bundle(runtime, make_provider, workspace):
    provider = make_provider(runtime)
    provider.initialize()

    assert os.listdir(workspace) == ["mock.jar"]
    attrs = manifest.read_manifest(provider.jar_path)
    assert "Export-Package" not in attrs
    assert attrs["Build-Jdk"] == "17.0.2"
    assert runtime.calls == ["install", "start"]
    assert runtime.lookup(provider.location).state() == BundleState.ACTIVE
    assert provider.location.startswith("file:///")


def test_initialize_wipes_nested_workspace_content(runtime, make_provider, workspace):
    nested = os.path.join(workspace, "a", "b")
    os.makedirs(nested)
    with open(os.path.join(nested, "stale.txt"), "w") as f:
        f.write("x")
    with open(os.path.join(workspace, "other.jar"), "w") as f:
        f.write("x")

    make_provider(runtime).initialize()
    assert os.listdir(workspace) == ["mock.jar"]


def test_add_capability_rewrites_jar_and_reloads(runtime, make_provider):
    provider = make_provider(runtime)
    provider.initialize()
    runtime.calls.clear()

    provider.add_capability_and_reload(Capability("org.apache.commons.lang", "2.6.0"))
    provider.add_capability_and_reload(Capability("org.slf4j", "1.7.0"))

    assert runtime.calls == ["stop", "update", "start", "stop", "update", "start"]
    handle = runtime.lookup(provider.location)
    assert handle.state() == BundleState.ACTIVE
    assert handle.manifests[-1]["Export-Package"] == (
        'org.apache.commons.lang;version="2.6.0",org.slf4j;version="1.7.0"')
    assert provider.exports == (Capability("org.apache.commons.lang", "2.6.0"), Capability("org.slf4j", "1.7.0"))


def test_reload_tolerates_slow_transitions(make_provider):
    runtime = FakeRuntime(lag=5)
    provider = make_provider(runtime)
    provider.initialize()
    provider.add_capability_and_reload(Capability("org.foo", "1.0"))
    assert runtime.lookup(provider.location).state() == BundleState.ACTIVE


def test_rewrite_with_same_exports_is_identical_except_timestamp(runtime, make_provider):
    provider = make_provider(runtime)
    provider.initialize()
    provider.add_capability_and_reload(Capability("org.foo", "1.0"))

    first = provider.write_jar()
    first_bytes = manifest.render_manifest(_without_timestamp(first))
    second = provider.write_jar()
    second_bytes = manifest.render_manifest(_without_timestamp(second))

    assert first[manifest.LAST_MODIFIED] != second[manifest.LAST_MODIFIED]
    assert first_bytes == second_bytes
    assert manifest.read_manifest(provider.jar_path) == second


def test_second_initialize_resets_exports_and_refreshes_bundle(runtime, make_provider, workspace):
    first = make_provider(runtime)
    first.initialize()
    first.add_capability_and_reload(Capability("org.foo", "1.0"))
    with open(os.path.join(workspace, "leftover"), "w") as f:
        f.write("x")
    runtime.calls.clear()

    second = make_provider(runtime)
    second.initialize()

    assert os.listdir(workspace) == ["mock.jar"]
    assert "Export-Package" not in manifest.read_manifest(second.jar_path)
    assert second.exports == ()
    # bundle já existia: só refresh, sem novo install
    assert runtime.calls == ["stop", "update", "start"]
    assert "Export-Package" not in runtime.lookup(second.location).manifests[-1]


def test_bundle_that_never_activates_fails_install_step(make_provider):
    runtime = FakeRuntime(stuck={"start"})
    provider = make_provider(runtime, poll_attempts=7)
    with pytest.raises(LifecycleFailure) as info:
        provider.initialize()
    assert info.value.step == "install"
    assert runtime.lookup(provider.location).polls == 7


@pytest.mark.parametrize("stuck, step", [("stop", "resolve"), ("update", "update"), ("start", "start")])
def test_stalled_reload_names_the_step(make_provider, stuck, step):
    runtime = FakeRuntime()
    provider = make_provider(runtime)
    provider.initialize()
    runtime.stuck.add(stuck)
    with pytest.raises(LifecycleFailure) as info:
        provider.add_capability_and_reload(Capability("org.foo", "1.0"))
    assert info.value.step == step


def test_runtime_command_error_becomes_lifecycle_failure(make_provider):
    runtime = FakeRuntime(failing={"install"})
    provider = make_provider(runtime)
    with pytest.raises(LifecycleFailure) as info:
        provider.initialize()
    assert info.value.step == "install"
    assert info.value.__cause__ is not None


def test_reload_without_installed_bundle_fails(runtime, make_provider):
    provider = make_provider(runtime)
    provider.initialize()
    runtime.handles.clear()
    with pytest.raises(LifecycleFailure):
        provider.add_capability_and_reload(Capability("org.foo", "1.0"))


def test_workspace_that_cannot_be_cleared(runtime, make_provider, monkeypatch):
    def refuse(path):
        raise PermissionError(13, "Permission denied", path)

    monkeypatch.setattr(utils, "clean_dir", refuse)
    with pytest.raises(WorkspaceFailure) as info:
        make_provider(runtime).initialize()
    assert isinstance(info.value.__cause__, PermissionError)
    assert runtime.calls == []


def test_symlinked_workspace_is_replaced_without_touching_its_target(runtime, make_provider, tmp_path):
    target = tmp_path / "precious"
    target.mkdir()
    (target / "keep.txt").write_text("x", encoding="utf-8")
    link = tmp_path / "ws"
    link.symlink_to(target, target_is_directory=True)

    provider = make_provider(runtime, workspace_dir=str(link))
    provider.initialize()

    assert (target / "keep.txt").read_text(encoding="utf-8") == "x"
    assert not link.is_symlink()
    assert os.listdir(link) == ["mock.jar"]


def test_failed_rewrite_leaves_exports_matching_the_jar(runtime, make_provider, monkeypatch):
    provider = make_provider(runtime)
    provider.initialize()
    provider.add_capability_and_reload(Capability("org.foo", "1.0"))

    def full_disk(path, attributes):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(manifest, "write_jar", full_disk)
    with pytest.raises(WorkspaceFailure):
        provider.add_capability_and_reload(Capability("org.bar", "2.0"))

    assert provider.exports == (Capability("org.foo", "1.0"),)
    assert manifest.read_manifest(provider.jar_path)["Export-Package"] == 'org.foo;version="1.0"'
