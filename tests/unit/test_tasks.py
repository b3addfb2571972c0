"""Tests for task creation from discovered files."""

import os

import pytest
from pydantic import ValidationError

from images_optimizer.core.config import OutputSettings
from images_optimizer.core.exceptions import ConfigurationError
from images_optimizer.core.models import SourceFile
from images_optimizer.processors import create_tasks


def _source(root, relative_path):
    return SourceFile(path=os.path.join(root, *relative_path.split("/")), relative_path=relative_path)


class TestCreateTasks:
    """Tests for create_tasks."""

    def test_preserves_structure_by_default(self, tmp_path):
        files = [_source("/photos", "a.jpg"), _source("/photos", "trips/b.png")]

        tasks = create_tasks(files, str(tmp_path), OutputSettings())

        assert [t.output_path for t in tasks] == [
            os.path.join(str(tmp_path), "a.jpg"),
            os.path.join(str(tmp_path), "trips", "b.png"),
        ]
        assert [t.relative_path for t in tasks] == ["a.jpg", "trips/b.png"]
        assert tasks[1].input_path == files[1].path

    def test_flattened_output(self, tmp_path):
        files = [_source("/photos", "trips/2024/b.png")]

        (task,) = create_tasks(files, str(tmp_path), OutputSettings(preserve_structure=False))

        assert task.output_path == os.path.join(str(tmp_path), "b.png")

    def test_naming_pattern(self, tmp_path):
        settings = OutputSettings(naming_pattern="{name}_optimized{ext}")

        (task,) = create_tasks([_source("/photos", "trips/b.png")], str(tmp_path), settings)

        assert task.output_path == os.path.join(str(tmp_path), "trips", "b_optimized.png")

    def test_overwrite_original_targets_input(self, tmp_path):
        files = [_source("/photos", "a.jpg")]

        (task,) = create_tasks(files, str(tmp_path), OutputSettings(overwrite_original=True))

        assert task.output_path == task.input_path

    def test_flattening_collision(self, tmp_path):
        files = [_source("/photos", "one/a.jpg"), _source("/photos", "two/a.jpg")]

        with pytest.raises(ConfigurationError, match="Output path collision"):
            create_tasks(files, str(tmp_path), OutputSettings(preserve_structure=False))

    def test_invalid_naming_pattern_rejected_by_settings(self):
        with pytest.raises(ValidationError, match="naming pattern"):
            OutputSettings(naming_pattern="{stem}{ext}")

    def test_unvalidated_naming_pattern(self, tmp_path):
        settings = OutputSettings.model_construct(
            preserve_structure=True,
            naming_pattern="{stem}{ext}",
            create_backup=False,
            overwrite_original=False,
        )
        with pytest.raises(ConfigurationError, match="Invalid naming pattern"):
            create_tasks([_source("/photos", "a.jpg")], str(tmp_path), settings)

    def test_empty_input(self, tmp_path):
        assert create_tasks([], str(tmp_path), OutputSettings()) == []

    def test_source_file_accepts_camel_case(self):
        source = SourceFile.model_validate({"path": "/photos/a.jpg", "relativePath": "a.jpg", "size": 12})
        assert source.relative_path == "a.jpg"
        assert source.size == 12
