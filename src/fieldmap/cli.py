from __future__ import annotations

import dataclasses
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

import typer

from fieldmap.config import MapperConfig
from fieldmap.engine.jsonutil import parse_json
from fieldmap.errors import MapError
from fieldmap.mapper import Mapper
from fieldmap.sources.load import load_descriptor_table, resolve_class

app = typer.Typer(help="fieldmap CLI")


def _setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    logger = logging.getLogger("fieldmap")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[fieldmap] %(levelname)s %(message)s"))
        logger.addHandler(h)
    logger.setLevel(logging.DEBUG)


def _mapper(config: Optional[Path], tables: Optional[List[Path]]) -> Mapper:
    for t in tables or []:
        load_descriptor_table(t)
    cfg = MapperConfig.from_yaml(config) if config else MapperConfig()
    return Mapper(cfg)


def _to_jsonable(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.name
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if isinstance(obj, (list, tuple)):
        return [_to_jsonable(v) for v in obj]
    if isinstance(obj, dict):
        return {k: _to_jsonable(v) for k, v in obj.items()}
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: _to_jsonable(v) for k, v in vars(obj).items() if not k.startswith("_")}
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    return str(obj)


# -----------------------------
# Commands
# -----------------------------

@app.command()
def properties(
    source: str = typer.Argument(..., help="Source class, module:Class"),
    destination: str = typer.Argument(..., help="Destination class, module:Class"),
    group: List[str] = typer.Option(None, "--group", "-g", help="Group class module:Class (repeatable)"),
    table: List[Path] = typer.Option(None, "--table", "-t", help="Descriptor table YAML (repeatable)"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """List the destination fields a source class would populate, and from where."""
    _setup_logging(verbose)
    try:
        mapper = _mapper(None, table)
        src_cls = resolve_class(source)
        dst_cls = resolve_class(destination)
        groups = [resolve_class(g) for g in group or []]
    except (MapError, FileNotFoundError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    mapped = mapper.mapped_properties(src_cls, dst_cls, *groups)
    if not mapped:
        typer.echo("No fields mapped.")
        return
    for name, dest in mapped.items():
        eff = mapper.effective_source(dest, src_cls, *groups, destination_type=dst_cls)
        typer.echo(f"{name} <- {eff.describe()}")


@app.command("map")
def map_json(
    source_json: Path = typer.Argument(..., help="JSON (or JSON5) file used as the source tree"),
    destination: str = typer.Argument(..., help="Destination class, module:Class"),
    group: List[str] = typer.Option(None, "--group", "-g", help="Group class module:Class (repeatable)"),
    table: List[Path] = typer.Option(None, "--table", "-t", help="Descriptor table YAML (repeatable)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML with a 'mapper' section"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Map a JSON document into a new destination instance and print it."""
    _setup_logging(verbose)
    try:
        mapper = _mapper(config, table)
        dst_cls = resolve_class(destination)
        groups = [resolve_class(g) for g in group or []]
        tree = parse_json(source_json.read_bytes(), where=str(source_json))
        result = mapper.map(tree, dst_cls, *groups)
    except (MapError, FileNotFoundError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(_to_jsonable(result), indent=2))


@app.command()
def check(table: Path = typer.Argument(..., help="Descriptor table YAML")):
    """Validate a descriptor table and register it."""
    try:
        cls = load_descriptor_table(table)
    except (MapError, FileNotFoundError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.secho(f"OK: {cls.__module__}:{cls.__qualname__}", fg=typer.colors.GREEN)
