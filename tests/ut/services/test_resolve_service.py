"""ResolveService 单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import dep, package, shared
from qpm.core.config import Config
from qpm.core.exceptions import UnresolvedDependencyError
from qpm.core.repository import FileRepository
from qpm.core.resolver import InMemoryResolver, QPackagesResolver
from qpm.services.container import ServiceContainer
from qpm.services.resolve_service import ResolveService


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    return Config(config_dir=str(tmp_path / "home"))


@pytest.fixture()
def remote() -> InMemoryResolver:
    return InMemoryResolver([
        package("b", "1.0.0", restored=[shared("c", "1.0.0", is_private=True)]),
        package("b", "1.1.0"),
        package("c", "1.0.0"),
    ])


class TestResolve:
    def test_closure_and_repository_written(self, config, remote, write_project) -> None:
        project = write_project("mod", "0.1.0", [dep("b", "~1.0.0")])
        result = ResolveService(config, remote).resolve(project)

        assert [r["id"] for r in result.rows()] == ["b"]
        assert result.rows()[0]["version"] == "1.0.0"
        repo = FileRepository.read(config.repository_file)
        assert repo.get_artifact("b", "1.0.0") is not None

    def test_failure_does_not_write(self, config, remote, write_project) -> None:
        project = write_project("mod", "0.1.0", [dep("b", "^1.0.0"), dep("zzz", "*")])
        with pytest.raises(UnresolvedDependencyError):
            ResolveService(config, remote).resolve(project)
        assert not Path(config.repository_file).exists()

    def test_offline_uses_repository(self, config, remote, write_project) -> None:
        project = write_project("mod", "0.1.0", [dep("b", "^1.0.0")])
        ResolveService(config, remote).resolve(project)

        config.offline = True
        result = ResolveService(config).resolve(project)
        assert result.rows()[0]["version"] == "1.1.0"

    def test_rows_mark_private(self, config, remote, write_project) -> None:
        project = write_project("mod", "0.1.0", [dep("c", "*", is_private=True)])
        rows = ResolveService(config, remote).resolve(project).rows()
        assert rows == [{"id": "c", "range": "*", "version": "1.0.0", "private": "yes"}]


class TestPublish:
    def test_publish_registers_and_caches(self, tmp_path, config, remote, write_project) -> None:
        project = write_project("mod", "0.1.0", [dep("b", "~1.0.0")])
        binary = tmp_path / "libmod.so"
        binary.write_bytes(b"so")

        svc = ResolveService(config, remote)
        published = svc.publish(project, binary)

        assert [d.dependency.id for d in published.restored_dependencies] == ["b"]
        assert svc.get("mod", "0.1.0") is not None
        assert (Path(config.cache_dir) / "mod" / "0.1.0" / "lib" / "libmod_0_1_0.so").exists()

    def test_published_package_is_resolvable(self, config, remote, write_project) -> None:
        lib = write_project("lib", "2.0.0")
        ResolveService(config, remote).publish(lib)

        consumer = write_project("app", "1.0.0", [dep("lib", "^2.0.0")])
        result = ResolveService(config, remote).resolve(consumer)
        assert [r["id"] for r in result.rows()] == ["lib"]


class TestQueries:
    def test_list_versions_remove(self, config) -> None:
        with FileRepository.transaction(config.repository_file) as repo:
            repo.add_artifact(package("a", "1.0.0"))
            repo.add_artifact(package("a", "1.2.0"))

        svc = ResolveService(config)
        assert svc.list_ids() == ["a"]
        assert svc.versions("a") == ["1.2.0", "1.0.0"]
        assert svc.versions("zzz") is None
        assert svc.remove("a", "1.0.0") is True
        assert svc.remove("a", "1.0.0") is False
        assert svc.versions("a") == ["1.2.0"]


class TestContainer:
    def test_service_is_cached(self, config, remote) -> None:
        container = ServiceContainer(config=config, remote=remote)
        assert container.resolve is container.resolve
        assert container.resolve.config is config
        assert container.remote is remote

    def test_default_remote_is_registry(self, config) -> None:
        config.qpackages_url = "https://mirror.example"
        remote = ServiceContainer(config=config).remote
        assert isinstance(remote, QPackagesResolver)
        assert remote.api_url == "https://mirror.example"

    def test_offline_has_no_remote(self, config, remote) -> None:
        config.offline = True
        assert ServiceContainer(config=config, remote=remote).remote is None
