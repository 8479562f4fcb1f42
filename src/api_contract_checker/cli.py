"""CLI entry point for api-contract-checker."""

from pathlib import Path

import click

from api_contract_checker.config import load_config, settings
from api_contract_checker.engine.analyzer import analyze as run_analysis
from api_contract_checker.engine.path_matcher import paths_match
from api_contract_checker.engine.url_normalizer import UrlNormalizer
from api_contract_checker.errors import SnapshotError
from api_contract_checker.facts.loader import load_package_json, load_snapshot
from api_contract_checker.logging import setup_logging
from api_contract_checker.report.json_report import render_json
from api_contract_checker.report.markdown import render_markdown


def _parse_package_json(values: tuple[str, ...]) -> list[tuple[str, Path]]:
    """Split ``REPO=PATH`` option values."""
    pairs = []
    for value in values:
        repo_id, sep, path = value.partition("=")
        if not sep or not repo_id.strip() or not path.strip():
            raise click.BadParameter(f"expected REPO=PATH, got {value!r}", param_hint="--package-json")
        pairs.append((repo_id.strip(), Path(path.strip())))
    return pairs


@click.group()
@click.option("--log-level", default=None, help="Log level (defaults to API_CONTRACT_LOG_LEVEL or WARNING).")
def main(log_level: str | None):
    """API Contract Checker - find mismatches between API producers and consumers."""
    setup_logging(log_level or settings.log_level)


@main.command()
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-c", "--config", "config_paths", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Config file (repeatable).")
@click.option("--package-json", "package_jsons", multiple=True, help="Dependency manifest as REPO=PATH (repeatable).")
@click.option("--format", "fmt", default=None, type=click.Choice(["markdown", "json"]), help="Report format.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write the report to this file instead of stdout.")
@click.option("--fail-on-issues", is_flag=True, help="Exit with status 1 when anything is reported.")
def analyze(
    snapshot_path: Path,
    config_paths: tuple[Path, ...],
    package_jsons: tuple[str, ...],
    fmt: str | None,
    output: Path | None,
    fail_on_issues: bool,
):
    """Analyze a facts snapshot and report API inconsistencies."""
    fmt = fmt or settings.report_format
    manifests = _parse_package_json(package_jsons)

    try:
        snapshot = load_snapshot(snapshot_path)
        config = load_config(list(config_paths))
        for repo_id, path in manifests:
            snapshot.dependencies.extend(load_package_json(path, repo_id))
    except SnapshotError as e:
        raise click.ClickException(str(e)) from e

    result = run_analysis(snapshot, config)
    report = render_json(result) if fmt == "json" else render_markdown(result)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(report, encoding="utf-8")
        click.echo(f"Report saved to {output}", err=True)
    else:
        click.echo(report)

    if fail_on_issues and result.has_findings:
        raise SystemExit(1)


@main.command()
@click.argument("url")
@click.option("-c", "--config", "config_paths", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Config file (repeatable).")
def normalize(url: str, config_paths: tuple[Path, ...]):
    """Show how a single call target is normalized."""
    try:
        config = load_config(list(config_paths))
    except SnapshotError as e:
        raise click.ClickException(str(e)) from e

    normalized = UrlNormalizer(config).normalize(url)
    click.echo(f"kind: {normalized.kind.value}")
    click.echo(f"path: {normalized.path if normalized.path is not None else '-'}")
    if normalized.stripped_host:
        click.echo(f"stripped: {normalized.stripped_host}")
    if normalized.env_var:
        click.echo(f"env var: {normalized.env_var}")
    if normalized.unconfigured_env_var:
        click.echo(f"unconfigured env var: {normalized.unconfigured_env_var}")


@main.command()
@click.argument("endpoint_path")
@click.argument("call_path")
def match(endpoint_path: str, call_path: str):
    """Check whether CALL_PATH is served by ENDPOINT_PATH."""
    if paths_match(endpoint_path, call_path):
        click.echo(f"match: {call_path} -> {endpoint_path}")
    else:
        click.echo(f"no match: {call_path} -/-> {endpoint_path}")
        raise SystemExit(1)
