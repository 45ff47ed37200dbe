import sys
from pathlib import Path
from typing import List, Optional

import click
from dotenv import load_dotenv

from slkube.logging_config import configure_logging

from .checks import CheckResult, CheckStatus, RegressionSuite
from .client import StarlakeApiClient

load_dotenv()

_COLORS = {
    CheckStatus.PASS: "green",
    CheckStatus.FAIL: "red",
    CheckStatus.SKIP: "yellow",
    CheckStatus.INFO: "blue",
}

# Location of the TPC-H sample shipped with the chart's demo project
SAMPLE_CSV = Path("tpch001/datasets/stage/tpch/orders-001.csv")


def print_result(result: CheckResult) -> None:
    label = click.style(result.status.value.upper(), fg=_COLORS[result.status])
    click.echo(f"  {label}: [{result.section}] {result.message}")


def csv_candidates(project_root: Optional[str] = None) -> List[Path]:
    """Sample locations: the project root, its parent, then the working directory."""
    root = Path(project_root) if project_root else Path.cwd()
    return [root / SAMPLE_CSV, root.parent / SAMPLE_CSV, Path.cwd() / SAMPLE_CSV]


def find_csv(explicit: Optional[str] = None, project_root: Optional[str] = None) -> Optional[Path]:
    if explicit:
        return Path(explicit)
    for candidate in csv_candidates(project_root):
        if candidate.is_file():
            return candidate.resolve()
    return None


@click.command()
@click.option("--api-url", "api_url", envvar="API_URL", default="http://localhost:8080", show_default=True)
@click.option("--csv-file", "csv_file", envvar="REGRESSION_CSV_FILE", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--project-root",
    "project_root",
    envvar="REGRESSION_PROJECT_ROOT",
    type=click.Path(file_okay=False),
    help="Directory holding tpch001/ (default: current directory)",
)
@click.option("--email", "email", envvar="REGRESSION_EMAIL", default="admin@localhost.local")
@click.option("--password", "password", envvar="REGRESSION_PASSWORD", default="admin")
@click.option("--domain", "domain", default=None, help="Domain name (default: regtest_<epoch>)")
@click.option("--cleanup", is_flag=True, help="Delete the test domain after the run")
@click.option("--verbose", "-v", is_flag=True, help="Log API response bodies")
def main(api_url, csv_file, project_root, email, password, domain, cleanup, verbose):
    """Storage regression checks for a deployed Starlake stack."""
    configure_logging("DEBUG" if verbose else "WARNING")

    csv_path = find_csv(csv_file, project_root)
    client = StarlakeApiClient(api_url)
    suite = RegressionSuite(
        client,
        domain_name=domain,
        csv_file=csv_path,
        email=email,
        password=password,
        cleanup=cleanup,
        on_result=print_result,
    )

    click.echo("S3 Regression Tests - Starlake")
    click.echo(f"  API URL:  {api_url}")
    click.echo(f"  Domain:   {suite.domain_name}")
    click.echo(f"  CSV File: {csv_path or 'NOT FOUND (schema and load checks will be skipped)'}")

    report = suite.run()

    click.echo("")
    click.secho(f"  PASSED: {report.count(CheckStatus.PASS)}", fg="green")
    click.secho(f"  FAILED: {report.count(CheckStatus.FAIL)}", fg="red")
    click.secho(f"  SKIPPED: {report.count(CheckStatus.SKIP)}", fg="yellow")
    click.echo(f"  Total: {report.total} checks")

    if not report.passed:
        click.secho("REGRESSION DETECTED", fg="red", bold=True)
        click.echo("  - 86-byte bug: check Transfer-Encoding handling in the UI S3 proxy")
        click.echo("  - Empty domain phantom files: S3 directory marker created as object")
        sys.exit(1)

    click.secho("ALL CHECKS PASSED", fg="green", bold=True)
    if not cleanup:
        click.echo(f"  Test domain '{suite.domain_name}' was NOT cleaned up (use --cleanup).")


if __name__ == "__main__":
    main()
