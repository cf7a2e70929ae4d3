"""本地仓库查询 API Blueprint（只读）"""

from __future__ import annotations

from flask import Blueprint, Response, jsonify

from qpm.web.responses import not_found

artifacts_bp = Blueprint("artifacts", __name__, url_prefix="/api/artifacts")


def _resolve_svc():  # type: ignore[no-untyped-def]
    from qpm.services.container import get_container
    return get_container().resolve


@artifacts_bp.route("", methods=["GET"])
def list_ids() -> Response:
    return jsonify(ids=_resolve_svc().list_ids())


@artifacts_bp.route("/<package_id>", methods=["GET"])
def versions(package_id: str) -> tuple[Response, int] | Response:
    found = _resolve_svc().versions(package_id)
    if found is None:
        return not_found(f"包 {package_id} ")
    return jsonify(id=package_id, versions=found)


@artifacts_bp.route("/<package_id>/<version>", methods=["GET"])
def get(package_id: str, version: str) -> tuple[Response, int] | Response:
    package = _resolve_svc().get(package_id, version)
    if package is None:
        return not_found(f"包 {package_id}@{version} ")
    return jsonify(package.to_dict())
