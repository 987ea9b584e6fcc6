"""Zip packaging of a finished project."""

import json
import logging
import re
import zipfile
from pathlib import Path
from typing import Sequence, Tuple

from .errors import ManifestError
from .media import audio_extension, image_extension
from .models import Manifest, Scene, check_scene_ids

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.yaml"
SCRIPT_NAME = "script.json"


def package_folder_name(topic: str) -> str:
    return re.sub(r"\s+", "_", topic.strip()) or "project"


def export_package(
    scenes: Sequence[Scene],
    topic: str,
    dest_dir: Path,
    context: str = "",
) -> Path:
    """Write scenes and their media into ``<folder>_assets.zip``.

    Media is stored byte-for-byte as ``images/{id+1}.<ext>`` and
    ``audio/{id+1}.<ext>``. The bundled manifest references those files in
    place of inline data.

    Args:
        scenes: Scenes with inline media.
        topic: Project topic, also used to name the archive.
        dest_dir: Directory receiving the archive.
        context: Source material stored in the manifest.

    Returns:
        Path to the written archive.
    """
    check_scene_ids(scenes)
    folder = package_folder_name(topic)
    dest_dir.mkdir(parents=True, exist_ok=True)
    archive_path = dest_dir / f"{folder}_assets.zip"

    referenced: list[Scene] = []
    rows: list[dict] = []

    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for scene in scenes:
            ref = scene.model_copy(update={
                "image_data": None,
                "image_file": None,
                "audio_data": None,
                "audio_file": None,
                "audio": None,
            })

            if scene.image_data is not None:
                ref.image_file = f"images/{scene.id + 1}.{image_extension(scene.image_data)}"
                zf.writestr(f"{folder}/{ref.image_file}", scene.image_data)
            if scene.audio_data is not None:
                ref.audio_file = f"audio/{scene.id + 1}.{audio_extension(scene.audio_data)}"
                zf.writestr(f"{folder}/{ref.audio_file}", scene.audio_data)

            referenced.append(ref)
            rows.append({
                "id": scene.id,
                "title": scene.title,
                "narration": scene.narration,
                "duration": scene.duration_hint,
                "actual_duration": scene.actual_duration,
                "visual": scene.visual_description,
                "image_file": ref.image_file,
                "audio_file": ref.audio_file,
            })

        manifest = Manifest(topic=topic, context=context, scenes=referenced)
        zf.writestr(f"{folder}/{SCRIPT_NAME}", json.dumps(rows, ensure_ascii=False, indent=2))
        zf.writestr(f"{folder}/{MANIFEST_NAME}", manifest.dump_yaml())

    logger.info(f"Exported {len(scenes)} scenes to {archive_path}")
    return archive_path


def load_package(archive_path: Path, extract_to: Path) -> Tuple[Manifest, Path]:
    """Extract an exported archive and load its manifest.

    Returns:
        The manifest and the directory its file references are relative to.

    Raises:
        ManifestError: If the archive holds no manifest.
    """
    with zipfile.ZipFile(archive_path) as zf:
        names = [name for name in zf.namelist() if Path(name).name == MANIFEST_NAME]
        if not names:
            raise ManifestError(f"No {MANIFEST_NAME} in {archive_path}")
        zf.extractall(extract_to)

    manifest_path = extract_to / names[0]
    return Manifest.from_yaml(manifest_path), manifest_path.parent
