"""CLI entry point for the short video generator."""

import asyncio
import logging
import tempfile
import typer
from pathlib import Path
from typing import List, Optional
from enum import Enum

from . import __version__
from .config import config
from .errors import MissingCredentialError, PersistenceError, ShortgenError, TotalFailureError
from .models import Manifest, ProjectSnapshot, ProjectState, Scene, Storyboard
from .storage import ProjectStore

app = typer.Typer(
    name="shortgen",
    help="AI-powered short vertical video generator",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"shortgen version {__version__}")
        raise typer.Exit()


def get_store() -> ProjectStore:
    return ProjectStore(config.state_dir)


def load_snapshot(store: ProjectStore) -> ProjectSnapshot:
    """Load the stored project or exit with a hint."""
    try:
        snapshot = asyncio.run(store.load())
    except PersistenceError as e:
        typer.echo(f"❌ Error loading project: {e}")
        raise typer.Exit(1)

    if snapshot is None:
        typer.echo("❌ No saved project found")
        typer.echo("   Run 'shortgen script' to start a new project")
        raise typer.Exit(1)
    return snapshot


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Short Video Generator - Turn a topic into a narrated vertical video."""
    pass


@app.command()
def script(
    topic: str = typer.Argument(
        ...,
        help="Topic of the video"
    ),
    context: str = typer.Option(
        "",
        "--context",
        "-c",
        help="Detailed description or source material"
    ),
    scenes: Optional[int] = typer.Option(
        None,
        "--scenes",
        "-n",
        help="Number of scenes (defaults to the configured scene count)",
        min=1,
        max=30
    ),
    output: Path = typer.Option(
        Path("script.yaml"),
        "--output",
        "-o",
        help="Output manifest file path"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Write a scene-by-scene script for review."""
    from .services import GenerationClient

    setup_logging(verbose)
    typer.echo(f"📝 Writing script: {topic}")

    try:
        config.validate_required()
    except MissingCredentialError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    async def _generate() -> List[Scene]:
        async with GenerationClient.from_config(config) as client:
            items = await client.generate_script(topic, context, scene_count=scenes)
        return Storyboard(scenes=items).to_scenes()

    try:
        generated = asyncio.run(_generate())
    except ShortgenError as e:
        typer.echo(f"❌ Error generating script: {e}")
        raise typer.Exit(1)

    manifest = Manifest(topic=topic, context=context, scenes=generated)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        manifest.to_yaml(output)
    except OSError as e:
        typer.echo(f"❌ Error saving manifest: {e}")
        raise typer.Exit(1)

    # A new script starts a new project.
    store = get_store()
    try:
        asyncio.run(store.clear())
        asyncio.run(store.save(generated, topic, ProjectState.SCRIPTED))
    except PersistenceError as e:
        typer.echo(f"⚠️  Could not save project snapshot: {e}")

    typer.echo(f"\n✅ Script saved: {output}")
    typer.echo(f"\n📽️  Scenes ({len(generated)}):")
    for scene in generated:
        typer.echo(f"   {scene.id + 1}. {scene.title} (~{scene.duration_hint}s)")
        preview = scene.narration[:70] + "..." if len(scene.narration) > 70 else scene.narration
        typer.echo(f"      {preview}")
    typer.echo(f"\nReview and edit {output}, then run 'shortgen generate --script {output}'")


@app.command()
def generate(
    script: Path = typer.Option(
        Path("script.yaml"),
        "--script",
        "-s",
        help="Path to the reviewed script manifest"
    ),
    resume: bool = typer.Option(
        False,
        "--resume",
        "-r",
        help="Resume the saved project instead of reading a script"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Generate an image and a narration for every scene."""
    from .editor.audio import decode_audio
    from .pipeline import AssetPipeline, Progress
    from .services import GenerationClient
    from .storage import rehydrate_audio

    setup_logging(verbose)

    try:
        config.validate_required()
    except MissingCredentialError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    store = get_store()

    if resume:
        snapshot = load_snapshot(store)
        topic = snapshot.topic
        scenes = asyncio.run(rehydrate_audio(snapshot.scenes, decode_audio))
        typer.echo(f"🔁 Resuming: {topic}")
    else:
        if not script.exists():
            typer.echo(f"❌ No script found at {script}")
            typer.echo("   Run 'shortgen script' first")
            raise typer.Exit(1)
        try:
            manifest = Manifest.from_yaml(script)
        except (ShortgenError, ValueError, OSError) as e:
            typer.echo(f"❌ Error loading script: {e}")
            raise typer.Exit(1)
        topic = manifest.topic
        scenes = manifest.scenes
        typer.echo(f"🎬 Generating assets: {topic}")

    typer.echo(f"   Scenes: {len(scenes)}")

    def report(progress: Progress) -> None:
        typer.echo(
            f"   🎨 {progress.images_done}/{progress.total} images  "
            f"🎙️  {progress.audio_done}/{progress.total} narrations  "
            f"({progress.percent}%)"
        )

    async def _run():
        async with GenerationClient.from_config(config) as client:
            pipeline = AssetPipeline.from_config(
                client, store=store, cfg=config, decoder=decode_audio, progress_cb=report
            )
            return await pipeline.run(scenes, topic)

    try:
        outcome = asyncio.run(_run())
    except TotalFailureError as e:
        typer.echo(f"\n❌ Generation failed: {e}")
        raise typer.Exit(1)

    total = len(outcome.scenes)
    typer.echo(f"\n📊 Summary:")
    typer.echo(f"   Images: {outcome.valid_images}/{total}")
    typer.echo(f"   Narrations: {outcome.valid_audio}/{total}")

    if outcome.failed_scene_ids:
        failed = ", ".join(str(scene_id + 1) for scene_id in outcome.failed_scene_ids)
        typer.echo(f"\n⚠️  Scenes without any asset: {failed}")
        typer.echo("   Run 'shortgen generate --resume' to retry missing assets")
    else:
        typer.echo(f"\n✅ Assets ready. Run 'shortgen render' or 'shortgen export'")


@app.command()
def status() -> None:
    """Show the saved project."""
    snapshot = load_snapshot(get_store())

    typer.echo(f"📁 Project: {snapshot.topic}")
    typer.echo(f"   State: {snapshot.state.value}")
    typer.echo(f"   Saved: {snapshot.saved_at:%Y-%m-%d %H:%M:%S}")
    typer.echo(f"   Scenes: {len(snapshot.scenes)}")

    typer.echo("\n📽️  Scenes:")
    for scene in snapshot.scenes:
        image_icon = "🖼️ " if scene.has_image else "⏳"
        audio_icon = "🔊" if scene.audio_data is not None else "⏳"
        duration = f"{scene.actual_duration:.1f}s" if scene.actual_duration else "-"
        typer.echo(f"   {image_icon} {audio_icon} {scene.id + 1}. {scene.title} ({duration})")


@app.command()
def timeline(
    script: Optional[Path] = typer.Option(
        None,
        "--script",
        "-s",
        help="Read scenes from a manifest instead of the saved project"
    ),
) -> None:
    """Print when each scene plays in the rendered video."""
    from .timing import FPS, build_timeline, raw_duration

    if script is not None:
        try:
            scenes = Manifest.from_yaml(script).scenes
        except (ShortgenError, ValueError, OSError) as e:
            typer.echo(f"❌ Error loading script: {e}")
            raise typer.Exit(1)
    else:
        scenes = load_snapshot(get_store()).scenes

    entries = build_timeline(scenes, fps=FPS)
    typer.echo(f"🕒 Timeline ({FPS} fps)")
    for scene, entry in zip(scenes, entries):
        typer.echo(
            f"   {scene.id + 1:>2}. {entry.body_start:7.2f}s  "
            f"{entry.body_duration:6.2f}s on screen  "
            f"(narration {raw_duration(scene):.2f}s)  {scene.title}"
        )
    if entries:
        typer.echo(f"   Total: {entries[-1].end_frame} frames ({entries[-1].end_frame / FPS:.2f}s)")


@app.command("export")
def export_command(
    output: Path = typer.Option(
        Path("output"),
        "--output",
        "-o",
        help="Directory receiving the zip package"
    ),
) -> None:
    """Package the saved project as a zip of media files and a manifest."""
    from .export import export_package

    snapshot = load_snapshot(get_store())
    archive = export_package(snapshot.scenes, snapshot.topic, output)
    typer.echo(f"📦 Package written: {archive}")


class OutputQuality(str, Enum):
    """Output quality presets."""
    DRAFT = "draft"
    FINAL = "final"


@app.command()
def render(
    package: Optional[Path] = typer.Option(
        None,
        "--package",
        "-p",
        help="Render an exported zip package instead of the saved project",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output: Path = typer.Option(
        Path("output/final.mp4"),
        "--output",
        "-o",
        help="Output file path"
    ),
    music: Optional[Path] = typer.Option(
        None,
        "--music",
        "-m",
        help="Background music looped under the narration",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    quality: OutputQuality = typer.Option(
        OutputQuality.FINAL,
        "--quality",
        "-q",
        help="Output quality preset"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Render the video offline."""
    from .editor import render_video
    from .export import load_package

    setup_logging(verbose)

    encoding_params = {
        "preset": "medium" if quality == OutputQuality.FINAL else "ultrafast",
        "bitrate": "8000k" if quality == OutputQuality.FINAL else "3000k",
    }

    with tempfile.TemporaryDirectory(prefix="shortgen_pkg_") as tmp:
        if package is not None:
            try:
                manifest, base_dir = load_package(package, Path(tmp))
            except (ShortgenError, ValueError, OSError) as e:
                typer.echo(f"❌ Error loading package: {e}")
                raise typer.Exit(1)
            scenes, topic = manifest.scenes, manifest.topic
        else:
            snapshot = load_snapshot(get_store())
            scenes, topic, base_dir = snapshot.scenes, snapshot.topic, None

        typer.echo(f"🎞️  Rendering {topic} ({len(scenes)} scenes, {quality.value} quality)...")
        try:
            path = render_video(scenes, output, base_dir=base_dir, music=music, **encoding_params)
        except (ShortgenError, ValueError, OSError) as e:
            typer.echo(f"❌ Error rendering video: {e}")
            raise typer.Exit(1)

    typer.echo(f"✅ Video rendered: {path}")


@app.command()
def clear() -> None:
    """Delete the saved project."""
    try:
        asyncio.run(get_store().clear())
    except PersistenceError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)
    typer.echo("🗑️  Saved project cleared")


if __name__ == "__main__":
    app()
