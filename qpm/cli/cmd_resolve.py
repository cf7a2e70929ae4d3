"""CLI：依赖解析与本地发布"""

from __future__ import annotations

import click

from qpm.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(resolve)
    group.add_command(publish)


@click.command()
@click.argument("project_dir", default=".", type=click.Path(exists=True, file_okay=False))
def resolve(project_dir: str) -> None:
    """解析项目的完整依赖闭包"""
    result = _svc().resolve.resolve(project_dir)
    rows = result.rows()
    if not rows:
        click.echo(f"{result.package.info.id} 没有依赖。")
        return
    for r in rows:
        marker = "  (private)" if r["private"] else ""
        click.echo(f"  {r['id']:30s} {r['version']:12s} [{r['range']}]{marker}")


@click.command()
@click.argument("project_dir", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--binary", default=None, type=click.Path(exists=True, dir_okay=False),
              help="release 二进制路径，提供时写入制品缓存")
@click.option("--debug-binary", default=None, type=click.Path(exists=True, dir_okay=False),
              help="debug 二进制路径")
def publish(project_dir: str, binary: str | None, debug_binary: str | None) -> None:
    """把本地项目登记到本地仓库（可选写入制品缓存）"""
    shared = _svc().resolve.publish(project_dir, binary, debug_binary)
    click.echo(f"已登记: {shared.id}@{shared.version}")
