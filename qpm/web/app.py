"""轻量级本地仓库查询服务（基于 Flask）

启动方式: qpm serve --port 8888
生产部署: gunicorn --config deploy/gunicorn.conf.py qpm.web.app:app
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from qpm.core.exceptions import QpmError
from qpm.web.blueprints.artifacts_bp import artifacts_bp
from qpm.web.responses import from_error

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.register_blueprint(artifacts_bp)


@app.errorhandler(HTTPException)
def handle_http_exception(exc):
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(QpmError)
def handle_qpm_error(exc):
    logger.warning("请求失败: [%s] %s", exc.code, exc)
    return from_error(exc)


@app.errorhandler(Exception)
def handle_generic_exception(exc):  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


def run_server(port: int = 8888, debug: bool = False, host: str = "127.0.0.1") -> None:
    logger.info("qpm 仓库服务已启动: http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug)
