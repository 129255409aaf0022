"""Tests for overviewgen.detector."""

from __future__ import annotations

from pathlib import Path

from overviewgen.detector import FrameworkSignature, ProjectTypeDetector
from tests._fixtures.project_builder import ProjectBuilder


def test_empty_directory_is_generic(tmp_path: Path) -> None:
    project_type = ProjectTypeDetector().detect(tmp_path)

    assert project_type.traits == []
    assert project_type.description == "Generic Project"


def test_composer_json_alone_marks_php(project_builder: ProjectBuilder) -> None:
    project_builder.write_json("composer.json", {"require": {"php": "^8.2"}})

    project_type = ProjectTypeDetector().detect(project_builder.path())

    assert project_type.has_trait("php")
    assert not project_type.has_trait("laravel")
    assert project_type.description == "PHP Project"


def test_laravel_version_prefers_composer_lock(project_builder: ProjectBuilder) -> None:
    project_builder.laravel()
    project_builder.write_json(
        "composer.lock",
        {"packages": [{"name": "laravel/framework", "version": "v11.2.0"}]},
    )

    project_type = ProjectTypeDetector().detect(project_builder.path())

    assert project_type.has_trait("laravel")
    assert project_type.has_trait("php")
    assert project_type.get_metadata("laravel_version") == "11"
    assert project_type.description == "Laravel 11.x Project"


def test_laravel_version_falls_back_to_constraint(project_builder: ProjectBuilder) -> None:
    project_builder.laravel()

    project_type = ProjectTypeDetector().detect(project_builder.path())

    assert project_type.get_metadata("laravel_version") == "10"


def test_laravel_detected_from_controllers_directory(project_builder: ProjectBuilder) -> None:
    (project_builder.path() / "app" / "Http" / "Controllers").mkdir(parents=True)

    project_type = ProjectTypeDetector().detect(project_builder.path())

    assert project_type.has_trait("laravel")
    assert project_type.description == "Laravel Project"


def test_rails_detected_with_version(project_builder: ProjectBuilder) -> None:
    project_builder.rails()

    project_type = ProjectTypeDetector().detect(project_builder.path())

    assert project_type.has_trait("rails")
    assert project_type.has_trait("ruby")
    assert project_type.get_metadata("rails_version") == "7"
    assert project_type.description == "Ruby on Rails 7.x Project"


def test_rails_version_from_gemfile_lock(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "Gemfile": "gem \"Rails\"\n",
            "Gemfile.lock": """
                GEM
                  specs:
                    rails (6.1.7)
                      actionpack (= 6.1.7)
            """,
        }
    )

    project_type = ProjectTypeDetector().detect(project_builder.path())

    assert project_type.has_trait("rails")
    assert project_type.get_metadata("rails_version") == "6"


def test_malformed_composer_json_does_not_raise(project_builder: ProjectBuilder) -> None:
    project_builder.write({"composer.json": "{broken"})

    project_type = ProjectTypeDetector().detect(project_builder.path())

    assert project_type.has_trait("php")
    assert not project_type.has_trait("laravel")


def test_custom_signatures_extend_detection(tmp_path: Path) -> None:
    (tmp_path / "mix.exs").write_text("defmodule Demo.MixProject do\nend\n", encoding="utf-8")
    signature = FrameworkSignature(
        trait="elixir",
        matches=lambda root: (root / "mix.exs").is_file(),
        version=lambda root: "1",
    )

    project_type = ProjectTypeDetector([signature]).detect(tmp_path)

    assert project_type.traits == ["elixir"]
    assert project_type.get_metadata("elixir_version") == "1"


def test_signature_errors_are_absorbed(tmp_path: Path) -> None:
    def _explode(root: Path) -> bool:
        raise PermissionError("denied")

    signature = FrameworkSignature(trait="broken", matches=_explode)

    project_type = ProjectTypeDetector([signature]).detect(tmp_path)

    assert project_type.traits == []
