import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from tunelab.config import Settings
from tunelab.core.logging import configure_logging
from tunelab.schemas.dataset import DatasetRecord, DatasetStatus
from tunelab.schemas.training import JobStatus, TrainingJob, TrainingParameters
from tunelab.services.dataset.store import DatasetStore
from tunelab.services.export.service import ExportService
from tunelab.services.training.progress import format_progress
from tunelab.services.training.registry import JobRegistry
from tunelab.services.training.service import TrainingService

console = Console()
cli_app = typer.Typer(name="tunelab", help="TuneLab dataset and training simulation CLI")

STATUS_STYLES = {
    JobStatus.IDLE: "dim",
    JobStatus.PREPARING: "cyan",
    JobStatus.TRAINING: "blue",
    JobStatus.PAUSED: "yellow",
    JobStatus.COMPLETED: "bold green",
    JobStatus.ERROR: "bold red",
}


def _run_async(coro):
    """Run async code from sync CLI context."""
    return asyncio.run(coro)


def _print_dataset(record: DatasetRecord, store: DatasetStore) -> None:
    if record.status != DatasetStatus.SUCCESS:
        console.print(f"[bold red]Validation failed for {record.name}:[/bold red] {record.error}")
        return

    console.print(f"[bold green]Successfully validated {record.name}[/bold green] ({record.format.value})")
    stats = store.get_dataset_stats(record.id)
    table = Table(title="Dataset Stats")
    table.add_column("Stat", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in stats.model_dump(exclude_none=True).items():
        table.add_row(key, str(value))
    console.print(table)


def _print_job(job: TrainingJob, log_tail: int) -> None:
    progress = format_progress(job)
    style = STATUS_STYLES[job.status]
    console.print(
        f"\nJob [bold]{job.id}[/bold]: [{style}]{job.status.value}[/{style}] "
        f"step {progress.current_step}/{progress.total_steps} ({progress.progress_pct}%), "
        f"elapsed {progress.elapsed}"
    )

    if job.metrics:
        table = Table(title="Training Metrics (last 10)")
        table.add_column("Step", justify="right")
        table.add_column("Training Loss", justify="right")
        table.add_column("Validation Loss", justify="right")
        for metric in job.metrics[-10:]:
            table.add_row(str(metric.step), f"{metric.training_loss:.4f}", f"{metric.validation_loss:.4f}")
        console.print(table)

    table = Table(title="Evaluation Metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Previous", justify="right")
    for metric in job.evaluation_metrics:
        table.add_row(metric.metric, f"{metric.value:.2f}", f"{metric.previous:.2f}")
    console.print(table)

    for line in job.logs[-log_tail:]:
        console.print(f"[dim]{line}[/dim]")


@cli_app.command("validate")
def validate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Dataset file (.csv, .jsonl, .json, .txt)"),
):
    """Validate a dataset file and print its stats."""
    configure_logging("warning", json_output=False)
    store = DatasetStore()
    record = _run_async(store.process_dataset_file(path.name, path.read_bytes()))
    _print_dataset(record, store)
    if record.status != DatasetStatus.SUCCESS:
        raise typer.Exit(code=1)


@cli_app.command("simulate")
def simulate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Dataset file to train on"),
    model: str = typer.Option("gemma-7b", "--model", help="Base model identifier"),
    epochs: int = typer.Option(3, "--epochs", min=1),
    batch_size: int = typer.Option(8, "--batch-size", min=1),
    learning_rate: float = typer.Option(2e-5, "--learning-rate"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for reproducible metrics"),
    tick_interval: float = typer.Option(0.0, "--tick-interval", help="Seconds per tick (1.0 = real time)"),
    log_tail: int = typer.Option(15, "--log-tail", help="Number of job log lines to print"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Run a simulated fine-tuning job on a dataset file until it completes."""
    configure_logging("info" if verbose else "warning", json_output=False)
    run_settings = Settings(
        tunelab_tick_interval=tick_interval,
        tunelab_dispatch_delay=0.0,
        tunelab_random_seed=seed,
    )

    async def _simulate():
        store = DatasetStore(settings=run_settings)
        record = await store.process_dataset_file(path.name, path.read_bytes())
        if record.status != DatasetStatus.SUCCESS:
            return record, None

        service = TrainingService(JobRegistry(store, settings=run_settings), settings=run_settings)
        job = service.start(TrainingParameters(
            model=model,
            epochs=epochs,
            batch_size=batch_size,
            learning_rate=learning_rate,
            dataset_id=record.id,
        ))
        console.print(f"Started job [bold]{job.id}[/bold] with {job.total_steps} steps")
        try:
            job = await service.wait(job.id)
        finally:
            await service.shutdown()
        return record, job

    record, job = _run_async(_simulate())
    if job is None:
        console.print(f"[bold red]Validation failed for {record.name}:[/bold red] {record.error}")
        raise typer.Exit(code=1)
    _print_job(job, log_tail)


@cli_app.command("catalog")
def catalog():
    """List export formats and cloud deployment targets."""
    exporter = ExportService()

    table = Table(title="Export Formats")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Extension")
    table.add_column("Size", justify="right")
    for fmt in exporter.list_formats():
        table.add_row(fmt.id, fmt.name, f".{fmt.extension}", fmt.size)
    console.print(table)

    table = Table(title="Cloud Targets")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Description")
    for target in exporter.list_targets():
        table.add_row(target.id, target.name, target.description)
    console.print(table)


def main():
    cli_app()


if __name__ == "__main__":
    main()
