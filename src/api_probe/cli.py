"""CLI entry point for api-probe."""

import asyncio
import json
from pathlib import Path

import click

from api_probe.config import settings
from api_probe.errors import SpecError
from api_probe.generator.testcase import TestCaseGenerator
from api_probe.generator.validator import filter_candidates
from api_probe.logging_setup import setup_logging
from api_probe.models import ApiSpecification, TestCase, TestSuiteResult
from api_probe.parser.spec import load_spec
from api_probe.runner.suite import SuiteRunner


def _load_spec_or_fail(spec_path: Path) -> ApiSpecification:
    try:
        return load_spec(spec_path)
    except SpecError as e:
        raise click.UsageError(f"{spec_path}: {e}") from e


def _load_cases(cases_path: Path) -> list[TestCase]:
    """Read cases written by `generate`; accepts a bare list or {"testCases": [...]}."""
    try:
        data = json.loads(cases_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.UsageError(f"{cases_path}: not valid JSON: {e}") from e
    if isinstance(data, dict):
        data = data.get("testCases", [])
    if not isinstance(data, list):
        raise click.UsageError(f"{cases_path}: expected a list of test cases")
    return filter_candidates(data)


def _dump_cases(test_cases: list[TestCase]) -> str:
    payload = {"testCases": [tc.model_dump(mode="json", by_alias=True) for tc in test_cases]}
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _print_suite(suite: TestSuiteResult) -> None:
    for result in suite.results:
        mark = "PASS" if result.passed else "FAIL"
        tc = result.test_case
        line = f"  [{mark}] {tc.method} {tc.endpoint} -> {result.status_code} ({result.duration_ms:.0f}ms) {tc.name}"
        click.echo(line)
        if result.error:
            click.echo(f"         error: {result.error}")
        for a in result.assertion_results:
            if a.origin == "explicit" and not a.passed:
                click.echo(f"         x {a.assertion}" + (f" ({a.error})" if a.error else ""))
    s = suite.summary
    click.echo(f"{s.total} total, {s.passed} passed, {s.failed} failed in {s.duration_ms:.0f}ms")


@click.group()
@click.option("--log-level", default=None, help="Logging level (default from API_PROBE_LOG_LEVEL).")
def main(log_level: str | None):
    """api-probe: generate API test cases from a spec and run them against a live endpoint."""
    setup_logging(log_level or settings.log_level)


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output JSON file for test cases.")
@click.option("--model", default=None, help="LLM model to use.")
def generate(spec_path: Path, output: Path, model: str | None):
    """Generate test cases from an API specification."""
    click.echo(f"Parsing {spec_path}...")
    spec = _load_spec_or_fail(spec_path)
    click.echo(f"Found {len(spec.operations())} operations.")

    click.echo("Generating test cases...")
    test_cases = asyncio.run(TestCaseGenerator(model=model).generate(spec))

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(_dump_cases(test_cases), encoding="utf-8")
    click.echo(f"{len(test_cases)} test cases saved to {output}")


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, path_type=Path))
@click.option("--base-url", required=True, help="Base URL of the API under test.")
@click.option("--cases", "cases_path", default=None, type=click.Path(exists=True, path_type=Path), help="Reuse test cases from a `generate` output file.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write the suite result as JSON.")
@click.option("--model", default=None, help="LLM model to use.")
@click.option("--max-concurrency", default=None, type=click.IntRange(min=1), help="Limit on simultaneous requests.")
def run(spec_path: Path, base_url: str, cases_path: Path | None, output: Path | None, model: str | None, max_concurrency: int | None):
    """Generate (or load) test cases and run them; exits 1 if any case fails."""
    spec = _load_spec_or_fail(spec_path)

    if cases_path:
        click.echo(f"Loading test cases from {cases_path}...")
        test_cases = _load_cases(cases_path)
    else:
        click.echo("Generating test cases...")
        test_cases = asyncio.run(TestCaseGenerator(model=model).generate(spec))
    click.echo(f"Running {len(test_cases)} test cases against {base_url}...")

    runner = SuiteRunner(max_concurrency=max_concurrency)
    suite = asyncio.run(runner.run(test_cases, base_url, api_spec=spec))
    _print_suite(suite)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(suite.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        click.echo(f"Report saved to {output}")

    if suite.summary.failed:
        raise SystemExit(1)


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", default=3000, type=int, help="Bind port.")
def serve(host: str, port: int):
    """Serve the HTTP API."""
    import uvicorn

    from api_probe.server import create_app

    uvicorn.run(create_app(), host=host, port=port)
