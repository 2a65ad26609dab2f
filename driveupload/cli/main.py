"""DriveUpload CLI - Main commands."""
import asyncio
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn

app = typer.Typer(
    name="driveupload",
    help="Resumable Google Drive uploads",
    add_completion=False
)
console = Console()

TOKEN_ENV = "DRIVEUPLOAD_TOKEN"


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def make_client(token: Optional[str], service_account: Optional[Path], as_email: Optional[str]):
    """Build a DriveClient from command line credentials."""
    from driveupload import DriveClient, ServiceAccountAuth

    if service_account:
        return DriveClient(auth=ServiceAccountAuth.from_file(service_account, subject=as_email))
    token = token or os.environ.get(TOKEN_ENV)
    if token:
        return DriveClient(token=token)
    return DriveClient()


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    folder_id: str = typer.Option(None, "--folder-id", "-f", help="Parent folder ID"),
    name: str = typer.Option(None, "--name", "-n", help="Custom file name"),
    mime_type: str = typer.Option(None, "--mime-type", "-m", help="MIME type"),
    chunk_size: int = typer.Option(None, "--chunk-size", "-c", help="Chunk size in bytes (multiple of 262144)"),
    no_md5: bool = typer.Option(False, "--no-md5", help="Do not hash the file locally"),
    no_verify: bool = typer.Option(False, "--no-verify", help="Skip size/MD5 verification"),
    upload_url: str = typer.Option(None, "--upload-url", "-u", help="Resume an existing session URL"),
    retry_probes: bool = typer.Option(False, "--retry-probes", help="Retry failed continuation probes with backoff"),
    token: str = typer.Option(None, "--token", "-t", help=f"Access token (or ${TOKEN_ENV})"),
    service_account: Path = typer.Option(None, "--service-account", "-s", help="Service account key file"),
    as_email: str = typer.Option(None, "--as-email", help="User to impersonate"),
):
    """Upload a file to Google Drive."""
    from driveupload import DriveUploadError, UploadProgress, ExponentialBackoffStrategy

    async def do_upload():
        try:
            client = make_client(token, service_account, as_email)
        except DriveUploadError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

        async with client as drive:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Uploading {file_path.name}", total=100)

                def on_progress(p: UploadProgress):
                    progress.update(task, completed=p.percentage)

                try:
                    result = await drive.upload(
                        file_path,
                        upload_url=upload_url,
                        filename=name,
                        folder_id=folder_id,
                        mime_type=mime_type,
                        skip_md5=no_md5,
                        chunk_size=chunk_size,
                        verify=not no_verify,
                        progress_callback=on_progress,
                        probe_retry=ExponentialBackoffStrategy(drive.config.retry) if retry_probes else None,
                    )
                except DriveUploadError as e:
                    progress.stop()
                    console.print(f"[red]Upload failed: {e}[/red]")
                    if e.file_id:
                        console.print(f"File ID: {e.file_id}")
                    raise typer.Exit(1)

            console.print(f"[green]Uploaded:[/green] {name or file_path.name}")
            console.print(f"File ID: {result.file_id}")
            console.print(f"Size: {result.size:,} bytes")
            if result.md5:
                console.print(f"MD5: {result.md5}")
            if result.mime_type:
                console.print(f"MIME type: {result.mime_type}")

    run_async(do_upload())


@app.command()
def url(
    file_path: Path = typer.Argument(..., help="Local file the session is for", exists=True, dir_okay=False),
    folder_id: str = typer.Option(None, "--folder-id", "-f", help="Parent folder ID"),
    name: str = typer.Option(None, "--name", "-n", help="Custom file name"),
    mime_type: str = typer.Option(None, "--mime-type", "-m", help="MIME type"),
    token: str = typer.Option(None, "--token", "-t", help=f"Access token (or ${TOKEN_ENV})"),
    service_account: Path = typer.Option(None, "--service-account", "-s", help="Service account key file"),
    as_email: str = typer.Option(None, "--as-email", help="User to impersonate"),
):
    """Create a resumable upload session and print its URL."""
    from driveupload import DriveUploadError

    async def do_url():
        try:
            async with make_client(token, service_account, as_email) as drive:
                session_url = await drive.get_upload_url(
                    name or file_path.name,
                    file_path.stat().st_size,
                    folder_id=folder_id,
                    mime_type=mime_type,
                )
        except DriveUploadError as e:
            console.print(f"[red]Failed to create session: {e}[/red]")
            raise typer.Exit(1)
        console.print(session_url)

    run_async(do_url())


@app.command()
def info(
    file_id: str = typer.Argument(..., help="Drive file ID"),
    token: str = typer.Option(None, "--token", "-t", help=f"Access token (or ${TOKEN_ENV})"),
    service_account: Path = typer.Option(None, "--service-account", "-s", help="Service account key file"),
    as_email: str = typer.Option(None, "--as-email", help="User to impersonate"),
):
    """Show size, MD5 and MIME type of an uploaded file."""
    from driveupload import DriveUploadError

    async def show_info():
        try:
            async with make_client(token, service_account, as_email) as drive:
                remote = await drive.get_final(file_id)
        except DriveUploadError as e:
            console.print(f"[red]Failed to get file info: {e}[/red]")
            raise typer.Exit(1)

        console.print(f"[bold]File ID:[/bold] {file_id}")
        console.print(f"[bold]Size:[/bold] {remote.size:,} bytes")
        console.print(f"[bold]MD5:[/bold] {remote.md5}")
        console.print(f"[bold]MIME type:[/bold] {remote.mime_type}")

    run_async(show_info())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
