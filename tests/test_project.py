"""Tests for the project context."""

import pytest

from data_labeler.core.project import STAGES, Project, is_image


class TestProject:
    """Tests for Project."""

    def test_create_makes_stage_directories(self, tmp_path):
        project = Project.create(tmp_path / "demo")

        for stage in STAGES:
            assert project.stage_dir(stage).is_dir()
        assert project.name == "demo"
        assert project.annotation_dir == tmp_path / "demo" / "annotation"

    def test_annotation_dir_is_annotation_stage(self, tmp_path):
        project = Project(tmp_path)
        assert project.annotation_dir == project.stage_dir("annotation")

    def test_unknown_stage(self, tmp_path):
        with pytest.raises(ValueError):
            Project(tmp_path).stage_dir("training")

    def test_list_images_sorted_and_filtered(self, project):
        (project.annotation_dir / "notes.md").write_text("x")
        (project.annotation_dir / "a.txt").write_text("0 0.5 0.5 0.1 0.1\n")

        assert project.list_images() == ["a.png", "b.png", "c.png"]

    def test_list_images_without_annotation_dir(self, tmp_path):
        assert Project(tmp_path).list_images() == []

    def test_annotation_status(self, project):
        project.labels.write("b.png", "0 0.5 0.5 0.1 0.1\n")
        project.labels.label_path("c.png").write_text("not a label\n")

        assert project.annotation_status() == [
            ("a.png", False),
            ("b.png", True),
            ("c.png", False),
        ]

    def test_image_size(self, project, make_image):
        make_image(project.annotation_dir / "wide.png", 320, 40)

        assert project.image_size("a.png") == (200, 100)
        assert project.image_size("wide.png") == (320, 40)

    def test_image_size_of_broken_file(self, project):
        (project.annotation_dir / "broken.png").write_bytes(b"not an image")

        with pytest.raises(ValueError):
            project.image_size("broken.png")

    def test_separate_projects_do_not_share_state(self, qapp, tmp_path):
        first = Project.create(tmp_path / "first")
        second = Project.create(tmp_path / "second")
        first.classes.write(["cat"])

        assert second.classes.read() == ["person", "car"]


def test_is_image(tmp_path):
    assert is_image(tmp_path / "a.JPG")
    assert is_image(tmp_path / "a.gif")
    assert not is_image(tmp_path / "a.txt")
