"""CLI entry point for the record updater."""

from __future__ import annotations

import importlib
import json
import sys
from typing import Any

import click

from .core.config import Settings, load_settings
from .core.errors import UpdaterError


def _load_record_type(path: str) -> type:
    """Import ``package.module:ClassName``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"expected MODULE:CLASS, got '{path}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import '{module_name}': {exc}") from exc
    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise click.BadParameter(f"'{module_name}' has no attribute '{attr}'") from exc
    return obj


def _parse_json_object(raw: str, option: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}", param_hint=option) from exc
    if not isinstance(data, dict):
        raise click.BadParameter("expected a JSON object", param_hint=option)
    return data


def _type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__qualname__
    return repr(tp).replace("typing.", "")


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.option("--config", default=None, help="TOML config file path")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """Record updater: merge sparse patches into typed records."""
    from .observability.logger import setup_logging

    try:
        settings = load_settings(config_path=config)
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(
        level=log_level or settings.observability.log_level,
        format=settings.observability.log_format,
    )
    ctx.obj = settings


@main.command()
@click.argument("identifiers", nargs=-1, required=True)
@click.option("--legacy-whitespace", is_flag=True, help="Reproduce the historical whitespace output")
@click.pass_obj
def fold(settings: Settings, identifiers: tuple[str, ...], legacy_whitespace: bool) -> None:
    """Print the default external name of each identifier."""
    from .naming.case_folder import fold as fold_identifier

    legacy = legacy_whitespace or settings.legacy_whitespace_folding
    for identifier in identifiers:
        click.echo(fold_identifier(identifier, legacy_whitespace=legacy))


@main.command()
@click.argument("record")
@click.pass_obj
def schema(settings: Settings, record: str) -> None:
    """Print the schema of RECORD (MODULE:CLASS) as JSON."""
    from .schema.builder import build_schema

    record_type = _load_record_type(record)
    try:
        derived = build_schema(record_type, settings=settings)
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc

    _echo_json([
        {
            "external_name": f.external_name,
            "internal_name": f.internal_name,
            "declared_type": _type_name(f.declared_type),
        }
        for f in derived
    ])


@main.command()
@click.argument("record")
@click.option("--existing", "existing_json", default="{}", help="Existing record as a JSON object of constructor arguments")
@click.option("--values", "values_json", required=True, help="Patch values as a JSON object")
@click.option("--report", "show_report", is_flag=True, help="Also print the merge report")
@click.pass_obj
def patch(
    settings: Settings,
    record: str,
    existing_json: str,
    values_json: str,
    show_report: bool,
) -> None:
    """Merge --values over --existing for RECORD (MODULE:CLASS)."""
    from .merge.diagnostics import MergeReport
    from .updater import make_updater

    record_type = _load_record_type(record)
    existing_args = _parse_json_object(existing_json, "--existing")
    values = _parse_json_object(values_json, "--values")

    try:
        updater = make_updater(record_type, settings=settings)
        existing = record_type(**existing_args)
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc
    except (TypeError, ValueError) as exc:
        raise click.BadParameter(str(exc), param_hint="--existing") from exc

    report = MergeReport() if show_report else None
    try:
        result = updater(existing, values, report=report)
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc

    output: dict[str, Any] = {"result": updater.schema.adapter.dump(result)}
    if report is not None:
        output["report"] = report.model_dump(mode="json")
    _echo_json(output)


if __name__ == "__main__":
    sys.exit(main())
