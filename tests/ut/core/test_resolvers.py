"""版本解析器单元测试：内存、本地缓存前置、远端注册表"""

from __future__ import annotations

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from conftest import package
from qpm.core.exceptions import RegistryError, ValidationError
from qpm.core.repository import FileRepository
from qpm.core.resolver import CachedResolver, InMemoryResolver, QPackagesResolver


class TestInMemoryResolver:
    def test_versions_newest_first(self) -> None:
        r = InMemoryResolver([package("a", "1.0.0"), package("a", "1.10.0"), package("a", "1.2.0")])
        assert r.get_versions("a") == ["1.10.0", "1.2.0", "1.0.0"]

    def test_case_insensitive(self) -> None:
        r = InMemoryResolver([package("Codegen", "1.0.0")])
        assert r.get_versions("codegen") == ["1.0.0"]
        assert r.get_shared_package("CODEGEN", "1.0.0").id == "Codegen"

    def test_unknown(self) -> None:
        r = InMemoryResolver()
        assert r.get_versions("x") == []
        with pytest.raises(RegistryError):
            r.get_shared_package("x", "1.0.0")


class TestCachedResolver:
    def test_local_hit_skips_remote(self) -> None:
        repo = FileRepository()
        repo.add_artifact(package("a", "1.0.0"))
        remote = MagicMock()
        r = CachedResolver(repo, remote)
        assert r.get_shared_package("a", "1.0.0").version == "1.0.0"
        remote.get_shared_package.assert_not_called()

    def test_remote_result_recorded(self) -> None:
        repo = FileRepository()
        remote = InMemoryResolver([package("a", "2.0.0")])
        r = CachedResolver(repo, remote)
        r.get_shared_package("a", "2.0.0")
        assert repo.get_artifact("a", "2.0.0") is not None

    def test_versions_merged(self) -> None:
        repo = FileRepository()
        repo.add_artifact(package("a", "1.0.0"))
        repo.add_artifact(package("a", "3.0.0"))
        remote = InMemoryResolver([package("a", "2.0.0"), package("a", "3.0.0")])
        assert CachedResolver(repo, remote).get_versions("a") == ["3.0.0", "2.0.0", "1.0.0"]

    def test_offline_uses_local_only(self) -> None:
        repo = FileRepository()
        repo.add_artifact(package("a", "1.0.0"))
        remote = MagicMock()
        r = CachedResolver(repo, remote, offline=True)
        assert r.get_versions("a") == ["1.0.0"]
        with pytest.raises(RegistryError):
            r.get_shared_package("a", "2.0.0")
        remote.get_versions.assert_not_called()

    def test_no_remote_means_offline(self) -> None:
        assert CachedResolver(FileRepository()).offline is True

    def test_remote_dropped_after_construction(self) -> None:
        repo = FileRepository()
        repo.add_artifact(package("a", "1.0.0"))
        r = CachedResolver(repo, InMemoryResolver([package("a", "2.0.0")]))
        r.remote = None
        assert r.get_versions("a") == ["1.0.0"]
        with pytest.raises(RegistryError):
            r.get_shared_package("a", "2.0.0")


def _response(payload) -> MagicMock:
    resp = MagicMock()
    resp.__enter__.return_value = io.BytesIO(json.dumps(payload).encode("utf-8"))
    return resp


class TestQPackagesResolver:
    def test_rejects_non_http(self) -> None:
        with pytest.raises(ValidationError):
            QPackagesResolver(api_url="file:///etc/passwd", timeout=5)

    def test_get_versions(self) -> None:
        r = QPackagesResolver(api_url="https://qpackages.example/", timeout=5)
        payload = [{"id": "bs-hook", "version": "1.0.0"}, {"id": "bs-hook", "version": "1.1.0"}]
        with patch("urllib.request.urlopen", return_value=_response(payload)) as mock_open:
            assert r.get_versions("bs-hook") == ["1.0.0", "1.1.0"]
        assert mock_open.call_args[0][0] == "https://qpackages.example/bs-hook?limit=0"

    def test_get_shared_package(self) -> None:
        r = QPackagesResolver(api_url="https://qpackages.example", timeout=5)
        payload = package("bs-hook", "1.1.0").to_dict()
        with patch("urllib.request.urlopen", return_value=_response(payload)) as mock_open:
            pkg = r.get_shared_package("bs-hook", "1.1.0")
        assert pkg.version == "1.1.0"
        assert mock_open.call_args[0][0] == "https://qpackages.example/bs-hook/1.1.0"

    def test_http_error(self) -> None:
        r = QPackagesResolver(api_url="https://qpackages.example", timeout=5)
        err = urllib.error.HTTPError("https://qpackages.example/x", 404, "Not Found", None, None)
        with patch("urllib.request.urlopen", side_effect=err):
            with pytest.raises(RegistryError, match="404"):
                r.get_versions("x")

    def test_connection_error(self) -> None:
        r = QPackagesResolver(api_url="https://qpackages.example", timeout=5)
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("refused")):
            with pytest.raises(RegistryError):
                r.get_versions("x")

    def test_bad_payload(self) -> None:
        r = QPackagesResolver(api_url="https://qpackages.example", timeout=5)
        with patch("urllib.request.urlopen", return_value=_response({"not": "a list"})):
            with pytest.raises(RegistryError):
                r.get_versions("x")
