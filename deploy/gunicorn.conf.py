"""Gunicorn 生产配置（本地仓库查询服务）

用法:
  QPM_SETTINGS=/etc/qpm/qpm.settings.yml \
  gunicorn --config deploy/gunicorn.conf.py qpm.web.app:app

查询接口只读，仓库文件由写入方在建议锁下原子替换，多 worker 读取安全。
"""

import os

bind = os.getenv("QPM_SERVE_BIND", "127.0.0.1:8888")

# 每次请求都重新读取仓库文件，CPU 占用低，少量 worker 即可
workers = int(os.getenv("QPM_SERVE_WORKERS", "2"))
threads = int(os.getenv("QPM_SERVE_THREADS", "4"))
worker_class = "gthread"
timeout = 30

accesslog = os.getenv("QPM_SERVE_ACCESS_LOG", "-")
errorlog = "-"


def post_fork(server, worker):  # noqa: ARG001
    """worker 启动后按 qpm 的方式初始化日志与配置"""
    from qpm.core.config import init_config
    from qpm.services.container import reset_container
    from qpm.utils.logger import setup_logging_from_env

    setup_logging_from_env()
    cfg = init_config(os.getenv("QPM_SETTINGS", ""))
    cfg.offline = True
    reset_container()
