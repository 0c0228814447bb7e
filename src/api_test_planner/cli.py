"""CLI entry point for api-test-planner."""

import json
import logging
from pathlib import Path

import click

from api_test_planner.errors import ConfigurationError
from api_test_planner.generator.context import GenerationContext
from api_test_planner.generator.prioritizer import RankingStrategy
from api_test_planner.generator.recommendation import RecommendationCache
from api_test_planner.parser.swagger import build_endpoints, parse_openapi
from api_test_planner.profile.endpoint import EndpointProfile
from api_test_planner.settings import PlannerSettings, load_settings


def _load(doc_path: Path, settings: PlannerSettings) -> list[EndpointProfile]:
    try:
        configs = parse_openapi(doc_path)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    for config in configs:
        settings.apply(config)
    return build_endpoints(configs)


def _settings(config_path: Path | None, **overrides) -> PlannerSettings:
    try:
        settings = load_settings(config_path)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    for field, value in overrides.items():
        if value is not None:
            setattr(settings, field, value)
    return settings


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log classification and generation details.")
def main(verbose: bool):
    """API Test Planner: select test strategies and synthesize test cases from API docs."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output JSON file for the test plan.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML settings file.")
@click.option("--seed", default=None, type=int, help="Seed for reproducible ids and values.")
@click.option("--max-cases", default=None, type=int, help="Cap on test cases per endpoint.")
@click.option("--ranking", default=None, type=click.Choice([r.value for r in RankingStrategy]), help="Ranking used when truncating.")
@click.option("--parameter-cases", is_flag=True, help="Include every parameter's cases, not only one case per scenario.")
def plan(doc_path: Path, output: Path, config_path: Path | None, seed: int | None,
         max_cases: int | None, ranking: str | None, parameter_cases: bool):
    """Generate a test plan (one suite per endpoint) from an OpenAPI document."""
    settings = _settings(config_path, seed=seed, max_test_cases=max_cases, ranking=ranking)

    click.echo(f"Parsing {doc_path}...")
    endpoints = _load(doc_path, settings)
    click.echo(f"Found {len(endpoints)} endpoints.")

    context = GenerationContext(seed=settings.seed)
    cache = RecommendationCache(settings.recommendation_cache_size)
    suites = []
    for endpoint in endpoints:
        suite = endpoint.generate_comprehensive_test_suite(context)
        entry = {
            "endpoint": endpoint.key,
            "business_criticality": endpoint.business_criticality.name,
            "recommendation": endpoint.recommend_strategy(cache).model_dump(mode="json"),
            "suite": suite.model_dump(mode="json"),
        }
        if parameter_cases:
            entry["test_cases"] = [c.model_dump(mode="json") for c in endpoint.generate_test_cases(context)]
        suites.append(entry)
        click.echo(f"  {endpoint.key}: {len(suite)} cases (grade {suite.metrics.grade})")

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps({"endpoints": suites}, indent=2, ensure_ascii=False), encoding="utf-8")
    click.echo(f"Test plan saved to {output}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML settings file.")
def classify(doc_path: Path, config_path: Path | None):
    """Print the derived classification of every endpoint."""
    settings = _settings(config_path)
    for endpoint in _load(doc_path, settings):
        risks = ", ".join(sorted(r.value for r in endpoint.security_risks)) or "none"
        click.echo(endpoint.key)
        click.echo(f"  criticality: {endpoint.business_criticality.name}")
        click.echo(f"  performance: {endpoint.performance_profile.value}")
        click.echo(f"  complexity: {endpoint.complexity_score} ({endpoint.complexity_level.value})")
        click.echo(f"  risks: {risks}")
        click.echo(f"  estimated tests: {endpoint.estimated_test_count}")
        for p in endpoint.parameters:
            click.echo(
                f"  - {p.name} ({p.location.value}): sensitivity={p.sensitivity.name} "
                f"importance={p.importance.name} priority={p.priority}"
            )
