import logging
from pathlib import Path

import click

from family_store.config import ConfigError, load_config
from family_store.dates import format_date
from family_store.models import Human, Sex
from family_store.seed import SeedError, load_seed
from family_store.store import FamilyTreeStore

_SEX_LABELS = {Sex.MALE: "男", Sex.FEMALE: "女"}


def _format_human(human: Human) -> str:
    birth = format_date(human.birth_date) if human.birth_date else "?"
    death = f" - {format_date(human.death_date)}" if human.death_date else ""
    line = f"{human.id}: {human.name} ({_SEX_LABELS[human.sex]}) {birth}{death}"
    if human.father_id is not None:
        line += f" 父={human.father_id}"
    if human.mother_id is not None:
        line += f" 母={human.mother_id}"
    return line


def _echo_humans(humans: list[Human]) -> None:
    if not humans:
        click.echo("該当する人物はいません")
        return
    for human in humans:
        click.echo(_format_human(human))


@click.group()
@click.option(
    "--input",
    "input_path",
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
    help="初期データの TOML ファイルパス",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
    default=None,
    help="設定ファイルのパス（省略時はカレントディレクトリの config.toml を自動検索）",
)
@click.option("--verbose", is_flag=True, help="デバッグログを出力する")
@click.pass_context
def cli(ctx: click.Context, input_path: str, config_path: str | None, verbose: bool) -> None:
    """家系図データストアの CLI"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    try:
        config = load_config(Path(config_path) if config_path else None)
        ctx.obj = load_seed(input_path, config)
    except (ConfigError, SeedError) as e:
        raise click.ClickException(str(e))


@cli.command()
@click.pass_obj
def tree(store: FamilyTreeStore) -> None:
    """登録されている全員を ID 順に表示する"""
    _echo_humans(store.get_family_tree())


@cli.command()
@click.argument("human_id", type=int)
@click.pass_obj
def show(store: FamilyTreeStore, human_id: int) -> None:
    """ID を指定して人物と父母・子供を表示する"""
    human = store.find_by_id(human_id)
    if human is None:
        raise click.ClickException(f"ID {human_id} の人物は登録されていません")
    click.echo(_format_human(human))
    for parent in store.get_parents(human):
        click.echo(f"  親: {_format_human(parent)}")
    for child in store.get_children(human):
        click.echo(f"  子: {_format_human(child)}")


@cli.command()
@click.argument("name")
@click.pass_obj
def find(store: FamilyTreeStore, name: str) -> None:
    """名前で検索する"""
    _echo_humans(store.find_by_name(name))


@cli.command(name="sort")
@click.option(
    "--by",
    "key",
    type=click.Choice(["name", "birth", "age"]),
    default="name",
    help="並び替えの基準",
)
@click.pass_obj
def sort_humans(store: FamilyTreeStore, key: str) -> None:
    """並び替えて表示する"""
    if key == "birth":
        humans = store.sort_by_birth_date()
    elif key == "age":
        humans = store.sort_by_age()
    else:
        humans = store.sort_by_name()
    _echo_humans(humans)
