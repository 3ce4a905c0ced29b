"""Command-line interface for esgdash."""

from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from . import __version__, audit
from .catalog import ParameterCatalog, parameter_count, validate_structure
from .config import Config, ensure_directories, load_config
from .db.repository import Database
from .errors import CatalogConfigError, EsgError
from .lifecycle import SubmissionLifecycle
from .logging import configure_logging
from .mapper import map_form_data_to_parameters, map_form_to_records
from .periods import format_period_label, month_period
from .sites import SiteService

# Create Typer app with subcommands
app = typer.Typer(
    name="esgdash",
    help="ESG data collection, approval and reporting.",
    no_args_is_help=True,
)

# Subcommand groups
sites_app = typer.Typer(help="Manage reporting sites.")
catalog_app = typer.Typer(help="Inspect the parameter catalog.")
categories_app = typer.Typer(help="Manage parameter categories.")
parameters_app = typer.Typer(help="Manage catalog parameters.")
submissions_app = typer.Typer(help="Browse submissions.")
review_app = typer.Typer(help="Approve or reject pending submissions.")

app.add_typer(sites_app, name="sites")
app.add_typer(catalog_app, name="catalog")
app.add_typer(categories_app, name="categories")
app.add_typer(parameters_app, name="parameters")
app.add_typer(submissions_app, name="submissions")
app.add_typer(review_app, name="review")

console = Console()

# Global options
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file"),
]

STATUS_STYLES = {
    "draft": "white",
    "pending": "yellow",
    "approved": "green",
    "rejected": "red",
}


def get_config(config_path: Path | None) -> Config:
    """Load configuration and set up logging."""
    config = load_config(config_path)
    configure_logging(config)
    audit.configure(enabled=config.logging.enabled)
    return config


def get_db(config: Config) -> Database:
    """Get database connection and ensure it's initialized."""
    ensure_directories(config)
    db = Database(config.database.path)
    db.initialize()
    return db


def fail(exc: Exception) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error: {exc}[/red]")
    raise typer.Exit(1)


def _styled_status(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


@app.command()
def version():
    """Show version information."""
    console.print(f"esgdash version {__version__}")


@app.command("init-db")
def init_db(config_path: ConfigOption = None):
    """Create the database schema."""
    config = get_config(config_path)
    db = get_db(config)
    try:
        console.print(f"[green]Database ready at {config.database.path}[/green]")
    finally:
        db.close()


# Sites subcommands


@sites_app.command("list")
def sites_list(config_path: ConfigOption = None):
    """List all reporting sites."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        sites = SiteService(db).list_sites()

        if not sites:
            console.print("[yellow]No sites found[/yellow]")
            raise typer.Exit(0)

        table = Table(title="Sites")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="white")
        table.add_column("Location", style="white")
        table.add_column("Type", style="white")

        for site in sites:
            table.add_row(str(site.id), site.name, site.location or "", site.type or "")

        console.print(table)

    finally:
        db.close()


@sites_app.command("add")
def sites_add(
    name: Annotated[str, typer.Argument(help="Site name")],
    location: Annotated[Optional[str], typer.Option("--location", "-l", help="Location")] = None,
    site_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="Site type (e.g., Manufacturing, Office)"),
    ] = None,
    config_path: ConfigOption = None,
):
    """Add a reporting site."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        site = SiteService(db).create_site(
            name, location, site_type, user=config.review.submitter_name
        )
        console.print(f"[green]Added site '{site.name}' (id={site.id})[/green]")
    except EsgError as exc:
        fail(exc)
    finally:
        db.close()


@sites_app.command("delete")
def sites_delete(
    site_id: Annotated[int, typer.Argument(help="Site ID")],
    config_path: ConfigOption = None,
):
    """Delete a site. Its submissions are kept and show as Unknown Site."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        if not SiteService(db).delete_site(site_id, user=config.review.reviewer_name):
            console.print(f"[red]Site {site_id} not found[/red]")
            raise typer.Exit(1)
        console.print(f"[green]Site {site_id} deleted[/green]")
    except EsgError as exc:
        fail(exc)
    finally:
        db.close()


# Catalog subcommands


@catalog_app.command("show")
def catalog_show(config_path: ConfigOption = None):
    """Show categories and parameters grouped by ESG type."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        structure = ParameterCatalog(db).build_structure()

        if parameter_count(structure) == 0 and not any(structure.values()):
            console.print("[yellow]Catalog is empty[/yellow]")
            raise typer.Exit(0)

        table = Table(title="Parameter Catalog")
        table.add_column("Type", style="cyan")
        table.add_column("Category", style="white")
        table.add_column("ID", style="white")
        table.add_column("Parameter", style="white")
        table.add_column("Unit", style="white")

        for esg_type, groups in structure.items():
            for category_name, group in groups.items():
                if not group.parameters:
                    table.add_row(esg_type, category_name, "", "[dim](empty)[/dim]", "")
                for parameter in group.parameters:
                    table.add_row(
                        esg_type,
                        category_name,
                        str(parameter.id),
                        parameter.name,
                        parameter.unit or "",
                    )

        console.print(table)

    finally:
        db.close()


@catalog_app.command("check")
def catalog_check(config_path: ConfigOption = None):
    """Check that parameter names line up with data columns."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        structure = ParameterCatalog(db).build_structure()
        validate_structure(structure)
        console.print(
            f"[green]All {parameter_count(structure)} parameters map to data columns[/green]"
        )
    except CatalogConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        for item in exc.unmapped:
            console.print(
                f"  - unmapped: {item.esg_type}/{item.category}: "
                f"'{item.name}' -> {item.column}"
            )
        for (esg_type, column), ids in exc.duplicates.items():
            console.print(f"  - duplicate: {esg_type}.{column} from parameters {ids}")
        raise typer.Exit(1)
    finally:
        db.close()


@categories_app.command("add")
def categories_add(
    name: Annotated[str, typer.Argument(help="Category name")],
    esg_type: Annotated[
        str,
        typer.Option("--type", "-t", help="environmental, social or governance"),
    ],
    config_path: ConfigOption = None,
):
    """Add a parameter category."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        catalog = ParameterCatalog(db, strict_columns=config.catalog.strict_columns)
        category = catalog.create_category(name, esg_type, user=config.review.reviewer_name)
        console.print(f"[green]Added {category.type} category '{category.name}' "
                      f"(id={category.id})[/green]")
    except EsgError as exc:
        fail(exc)
    finally:
        db.close()


@parameters_app.command("add")
def parameters_add(
    name: Annotated[str, typer.Argument(help="Parameter name")],
    category_id: Annotated[int, typer.Option("--category", help="Category ID")],
    unit: Annotated[Optional[str], typer.Option("--unit", "-u", help="Unit of measure")] = None,
    config_path: ConfigOption = None,
):
    """Add a parameter to a category."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        catalog = ParameterCatalog(db, strict_columns=config.catalog.strict_columns)
        parameter = catalog.create_parameter(
            name, unit, category_id, user=config.review.reviewer_name
        )
        console.print(f"[green]Added parameter '{parameter.name}' (id={parameter.id})[/green]")
    except EsgError as exc:
        fail(exc)
    finally:
        db.close()


# Submission entry


def _read_submission_file(file: Path) -> dict:
    with open(file) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise typer.BadParameter(f"{file} must contain a mapping")
    return raw


@app.command()
def submit(
    file: Annotated[Path, typer.Argument(help="YAML file with site, period and values")],
    draft: Annotated[
        bool,
        typer.Option("--draft", help="Save as draft instead of submitting for approval"),
    ] = False,
    config_path: ConfigOption = None,
):
    """Submit ESG data from a YAML file.

    The file holds ``site_id``, either ``month`` and ``year`` or
    ``period_start`` and ``period_end``, and ``values``: a mapping of
    parameter name to value.
    """
    raw = _read_submission_file(file)
    config = get_config(config_path)
    db = get_db(config)

    try:
        if "month" in raw:
            period_start, period_end = month_period(int(raw["month"]), int(raw.get("year", 0)))
        else:
            period_start, period_end = raw.get("period_start"), raw.get("period_end")

        structure = ParameterCatalog(db).build_structure()
        values = map_form_data_to_parameters(raw.get("values") or {}, structure)
        payload = map_form_to_records(values, structure)

        lifecycle = SubmissionLifecycle(db, config.review)
        create = lifecycle.save_draft if draft else lifecycle.submit
        submission_id = create(
            raw.get("site_id"),
            period_start,
            period_end,
            payload,
            submitted_by=raw.get("submitted_by"),
        )
        state = "draft" if draft else "pending"
        console.print(f"[green]Submission {submission_id} saved ({state})[/green]")
    except (EsgError, ValueError) as exc:
        fail(exc)
    finally:
        db.close()


# Submissions subcommands


@submissions_app.command("list")
def submissions_list(
    status: Annotated[
        Optional[str],
        typer.Option("--status", "-s", help="Filter by status"),
    ] = None,
    config_path: ConfigOption = None,
):
    """List submissions, most recently updated first."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        items = SubmissionLifecycle(db, config.review).approval_queue(status)

        if not items:
            console.print("[yellow]No submissions found[/yellow]")
            raise typer.Exit(0)

        table = Table(title="Submissions")
        table.add_column("ID", style="cyan")
        table.add_column("Site", style="white")
        table.add_column("Period", style="white")
        table.add_column("Status", style="white")
        table.add_column("Submitted By", style="white")
        table.add_column("Reviewer", style="white")
        table.add_column("Comment", style="white")

        for item in items:
            table.add_row(
                str(item.id),
                item.site_name,
                item.period,
                _styled_status(item.status),
                item.submitted_by,
                item.reviewer or "",
                item.review_comment or "",
            )

        console.print(table)

    finally:
        db.close()


@submissions_app.command("show")
def submissions_show(
    submission_id: Annotated[int, typer.Argument(help="Submission ID")],
    config_path: ConfigOption = None,
):
    """Show a submission with its non-zero values."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        details = SubmissionLifecycle(db, config.review).get_details(submission_id)
        submission = details.submission

        console.print(f"\n[bold]Submission {submission.id}[/bold]")
        console.print(f"  Site: {submission.site_name}")
        console.print(
            f"  Period: {format_period_label(submission.period_start, submission.period_end)}"
        )
        console.print(f"  Status: {_styled_status(submission.status)}")
        console.print(f"  Submitted by: {submission.submitted_by}")
        if submission.reviewer:
            console.print(f"  Reviewer: {submission.reviewer}")
        if submission.review_comment:
            console.print(f"  Comment: {submission.review_comment}")

        table = Table(title="Values")
        table.add_column("Type", style="cyan")
        table.add_column("Field", style="white")
        table.add_column("Value", style="green", justify="right")

        skip = {"id", "submission_id", "created_at", "updated_at"}
        for esg_type, row in (
            ("environmental", details.environmental_data),
            ("social", details.social_data),
            ("governance", details.governance_data),
        ):
            for column, value in row.items():
                if column in skip or not value:
                    continue
                table.add_row(esg_type, column, f"{value:,.2f}")

        console.print(table)

    except EsgError as exc:
        fail(exc)
    finally:
        db.close()


# Review subcommands


@review_app.command("approve")
def review_approve(
    submission_id: Annotated[int, typer.Argument(help="Submission ID")],
    reviewer: Annotated[
        Optional[str],
        typer.Option("--reviewer", "-r", help="Reviewer name"),
    ] = None,
    config_path: ConfigOption = None,
):
    """Approve a pending submission."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        SubmissionLifecycle(db, config.review).approve(submission_id, reviewer=reviewer)
        console.print(f"[green]Submission {submission_id} approved[/green]")
    except EsgError as exc:
        fail(exc)
    finally:
        db.close()


@review_app.command("reject")
def review_reject(
    submission_id: Annotated[int, typer.Argument(help="Submission ID")],
    comment: Annotated[str, typer.Option("--comment", "-m", help="Reason for rejection")],
    reviewer: Annotated[
        Optional[str],
        typer.Option("--reviewer", "-r", help="Reviewer name"),
    ] = None,
    config_path: ConfigOption = None,
):
    """Reject a pending submission with a reason."""
    config = get_config(config_path)
    db = get_db(config)

    try:
        SubmissionLifecycle(db, config.review).reject(
            submission_id, comment, reviewer=reviewer
        )
        console.print(f"[green]Submission {submission_id} rejected[/green]")
    except EsgError as exc:
        fail(exc)
    finally:
        db.close()


# Reporting


@app.command()
def report(
    kind: Annotated[str, typer.Argument(help="environmental, social or governance")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output CSV file"),
    ] = None,
    config_path: ConfigOption = None,
):
    """Export a report table over approved submissions as CSV."""
    from .output.report import export_report_csv

    config = get_config(config_path)
    db = get_db(config)

    try:
        data = db.fetch_approved_submissions_data()
        path = export_report_csv(kind, data, output_path=output)
        console.print(f"[green]Report written to {path}[/green]")
    except (EsgError, ValueError) as exc:
        fail(exc)
    finally:
        db.close()


@app.command()
def dashboard(
    timeframe: Annotated[
        Optional[str],
        typer.Option("--timeframe", "-t", help="quarter, year or custom"),
    ] = None,
    config_path: ConfigOption = None,
):
    """Show headline figures over approved submissions."""
    from .periods import calculate_date_range
    from .processing.aggregator import dashboard_summary, filter_by_period, gwp_weighted

    config = get_config(config_path)
    db = get_db(config)

    try:
        data = db.fetch_approved_submissions_data()
        if timeframe:
            start, end = calculate_date_range(timeframe)
            data = filter_by_period(data, start, end)
        summary = dashboard_summary(data)

        table = Table(title="ESG Dashboard")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        table.add_row("Approved Submissions", str(summary.total_submissions))
        table.add_row("Total Emissions", f"{summary.total_emissions:,.2f}")
        table.add_row("Renewable Energy", f"{summary.renewable_percentage:.1f}%")
        table.add_row("Fugitive Emissions (kg)", f"{summary.fugitive.total:,.2f}")
        table.add_row(
            "Fugitive Emissions (tCO2e)", f"{gwp_weighted(summary.fugitive)['total']:,.2f}"
        )
        console.print(table)

        if summary.site_stats:
            sites = Table(title="Sites")
            sites.add_column("Site", style="cyan")
            sites.add_column("Submissions", justify="right")
            sites.add_column("Emissions", justify="right")
            sites.add_column("Water", justify="right")
            sites.add_column("Employees", justify="right")
            for stats in summary.site_stats:
                sites.add_row(
                    stats.site_name,
                    str(stats.submission_count),
                    f"{stats.total_emissions:,.2f}",
                    f"{stats.water_consumption:,.2f}",
                    f"{stats.total_employees:,.0f}",
                )
            console.print(sites)

    finally:
        db.close()


# Web server command


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", help="Enable auto-reload for development"),
    ] = False,
    config_path: ConfigOption = None,
):
    """Start the JSON API server."""
    import uvicorn

    from .web import create_app

    config = get_config(config_path)
    ensure_directories(config)

    server_host = host or config.web.host
    server_port = port or config.web.port

    console.print("[cyan]Starting esgdash API server...[/cyan]")
    console.print(f"  Host: {server_host}")
    console.print(f"  Port: {server_port}")
    console.print(f"  Config: {config_path or 'config.yaml'}")
    console.print(f"  Database: {config.database.path}")

    uvicorn.run(
        create_app(config=config),
        host=server_host,
        port=server_port,
        reload=reload,
    )


if __name__ == "__main__":
    app()
