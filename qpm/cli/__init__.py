"""qpm 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
QpmError 统一转换为错误提示 + 退出码 1。
"""

from typing import Any

import click

from qpm import __version__
from qpm.core.config import init_config
from qpm.core.exceptions import QpmError
from qpm.services.container import get_container, reset_container
from qpm.utils.logger import setup_logging_from_env


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


class QpmGroup(click.Group):
    """把业务异常转换为 click 的错误输出"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except QpmError as e:
            raise click.ClickException(f"[{e.code}] {e}") from e


@click.group(cls=QpmGroup)
@click.version_option(version=__version__)
@click.option("--settings", default="", help="设置文件路径（默认为用户配置目录下的 qpm.settings.yml）")
@click.option("--offline", is_flag=True, help="只使用本地仓库，不访问远端注册表")
def main(settings: str, offline: bool) -> None:
    """qpm - 依赖解析与本地制品缓存"""
    setup_logging_from_env()
    cfg = init_config(settings)
    if offline:
        cfg.offline = True
    reset_container()


# 注册各领域子命令
from qpm.cli.cmd_resolve import register as _reg_resolve  # noqa: E402
from qpm.cli.cmd_cache import register as _reg_cache  # noqa: E402

_reg_resolve(main)
_reg_cache(main)
