"""Integration tests for the complete optimization pipeline."""

import json
import os

import pytest
from PIL import Image

from images_optimizer import (
    SourceFile,
    create_tasks,
    load_configuration_file,
    resolve_configuration,
    run_batch,
)
from images_optimizer.engines import PillowEngine, pillow_supports
from images_optimizer.testing.fakes import RecordingProgressSink, create_test_image


@pytest.fixture
def source_dir(tmp_path):
    root = tmp_path / "photos"
    create_test_image(root / "a.jpg", width=600, height=400, image_format="JPEG")
    create_test_image(root / "b.png", width=120, height=80, image_format="PNG")
    create_test_image(root / "trips" / "c.jpg", width=50, height=50, image_format="JPEG")
    return root


def _discover(root):
    files = []
    for dirpath, _, names in os.walk(root):
        for name in sorted(names):
            path = os.path.join(dirpath, name)
            relative = os.path.relpath(path, root).replace(os.sep, "/")
            files.append(SourceFile(path=path, relative_path=relative, size=os.path.getsize(path)))
    return files


class TestPipelineIntegration:
    """End-to-end runs with the Pillow engine."""

    def test_end_to_end_with_pillow(self, source_dir, tmp_path):
        config = resolve_configuration(
            call_overrides={"processing": {"maxDimensions": {"width": 300, "height": 300}}}
        )
        output_root = tmp_path / "optimized"
        tasks = create_tasks(_discover(source_dir), str(output_root), config.output)
        sink = RecordingProgressSink()

        aggregate = run_batch(tasks, config, 2, progress_sink=sink, engine=PillowEngine())

        assert aggregate.total_processed == 3
        assert aggregate.success_count == 3
        assert aggregate.error_count == 0
        assert aggregate.engine_used == "pillow"
        assert len(aggregate.worker_ids_used) <= 2
        assert len(sink.snapshots) == 3

        with Image.open(output_root / "a.jpg") as image:
            assert image.size == (300, 200)
            assert image.format == "JPEG"
        with Image.open(output_root / "b.png") as image:
            assert image.size == (120, 80)
        assert (output_root / "trips" / "c.jpg").exists()

        by_name = {r.file_name: r for r in aggregate.results}
        assert by_name["a.jpg"].resized is True
        assert (by_name["a.jpg"].output_width, by_name["a.jpg"].output_height) == (300, 200)
        assert by_name["trips/c.jpg"].resized is False
        assert not [n for n in os.listdir(output_root) if n.endswith(".partial")]

    @pytest.mark.skipif(not pillow_supports("webp"), reason="Pillow built without WebP")
    def test_converts_to_webp_by_extension(self, source_dir, tmp_path):
        config = resolve_configuration(call_overrides={"output": {"namingPattern": "{name}.webp"}})
        output_root = tmp_path / "optimized"
        tasks = create_tasks(_discover(source_dir), str(output_root), config.output)

        aggregate = run_batch(tasks, config, 3, engine=PillowEngine())

        assert aggregate.success_count == 3
        with Image.open(output_root / "b.webp") as image:
            assert image.format == "WEBP"

    def test_mixed_batch_isolates_failures(self, source_dir, tmp_path):
        (source_dir / "notes.txt").write_text("not an image", encoding="utf-8")
        (source_dir / "broken.jpg").write_bytes(b"definitely not a jpeg")
        config = resolve_configuration()
        tasks = create_tasks(_discover(source_dir), str(tmp_path / "out"), config.output)

        aggregate = run_batch(tasks, config, 2, engine=PillowEngine())

        assert aggregate.total_processed == 5
        assert aggregate.success_count == 3
        assert aggregate.error_count == 2
        failures = {r.file_name: r.error_message for r in aggregate.failed_results()}
        assert failures["notes.txt"] == "Unsupported file format: .txt"
        assert failures["broken.jpg"].startswith("Cannot identify image file")
        assert not (tmp_path / "out" / "broken.jpg").exists()
        assert aggregate.total_optimized_size > 0

    def test_configuration_file_layer(self, source_dir, tmp_path):
        settings_path = tmp_path / "optimizer.json"
        settings_path.write_text(
            json.dumps(
                {
                    "defaultSettings": {"jpeg": {"quality": 40}},
                    "processing": {"maxDimensions": {"width": 100, "height": 100}},
                    "output": {"preserveStructure": False},
                }
            ),
            encoding="utf-8",
        )
        config = resolve_configuration(user_overrides=load_configuration_file(settings_path))
        output_root = tmp_path / "flat"
        tasks = create_tasks(_discover(source_dir), str(output_root), config.output)

        aggregate = run_batch(tasks, config, engine=PillowEngine())

        assert aggregate.success_count == 3
        assert sorted(os.listdir(output_root)) == ["a.jpg", "b.png", "c.jpg"]
        with Image.open(output_root / "a.jpg") as image:
            assert image.size == (100, 67)
