"""CLI：本地仓库查询与维护"""

from __future__ import annotations

import json

import click

from qpm.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(cache)
    group.add_command(serve)


@click.group()
def cache() -> None:
    """本地仓库"""


@cache.command(name="list")
@click.argument("package_id", required=False)
def list_artifacts(package_id: str | None) -> None:
    """列出仓库中的包，指定 id 时列出其版本"""
    svc = _svc().resolve
    if package_id is None:
        ids = svc.list_ids()
        if not ids:
            click.echo("本地仓库为空。")
            return
        for pid in ids:
            click.echo(f"  {pid}")
        return

    versions = svc.versions(package_id)
    if versions is None:
        click.echo(f"本地仓库中没有: {package_id}")
        return
    for v in versions:
        click.echo(f"  {v}")


@cache.command(name="show")
@click.argument("package_id")
@click.argument("version")
def show_artifact(package_id: str, version: str) -> None:
    """以 JSON 输出某个版本的完整配置"""
    package = _svc().resolve.get(package_id, version)
    if package is None:
        raise click.ClickException(f"本地仓库中没有: {package_id}@{version}")
    click.echo(json.dumps(package.to_dict(), indent=2, ensure_ascii=False))


@cache.command(name="remove")
@click.argument("package_id")
@click.argument("version")
def remove_artifact(package_id: str, version: str) -> None:
    """从仓库删除某个版本"""
    if _svc().resolve.remove(package_id, version):
        click.echo(f"已删除: {package_id}@{version}")
    else:
        raise click.ClickException(f"本地仓库中没有: {package_id}@{version}")


@click.command()
@click.option("--port", default=8888, help="监听端口")
@click.option("--host", default="127.0.0.1", help="监听地址")
def serve(port: int, host: str) -> None:
    """启动本地仓库查询服务"""
    from qpm.web.app import run_server
    run_server(port=port, host=host)
