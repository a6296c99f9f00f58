"""Tests for services: edit flows, gradient derivation, export."""

from __future__ import annotations

import zipfile
from datetime import datetime
from pathlib import Path

import pytest
from conftest import FakeClock, make_png, png_header
from result import Err, Ok

from songvault.data.archive import ArchiveManager
from songvault.data.lyrics import LyricsFileManager
from songvault.data.preferences import PreferencesStore
from songvault.models import ArchiveEntryType, ChatMessage, GradientMode, PreferencesRecord, Project
from songvault.models.archive import LABEL_TIMESTAMP_FORMAT
from songvault.services.export_service import (
    ExportService,
    artwork_with_title,
    project_info,
    sanitize_file_name,
)
from songvault.services.gradient import DEFAULT_GRADIENT, dominant_color, gradient_colors
from songvault.services.project_service import ProjectService


class TestLyricsScenario:
    @pytest.mark.asyncio
    async def test_riverbed(
        self,
        project_service: ProjectService,
        lyrics: LyricsFileManager,
        clock: FakeClock,
    ) -> None:
        project = project_service.create_project("Riverbed")
        assert project.artwork is None
        assert len(project.files) == 1
        assert project.files[0].suffix == ".txt"
        assert lyrics.load_lyrics(project) == ""

        assert project_service.update_lyrics(project, "verse one") == Ok(None)
        assert project.archive.entries == []

        edit_time = clock.advance(minutes=5)
        result = project_service.update_lyrics(project, "verse two")
        assert isinstance(result, Ok)
        entries = project.archive.entries_of_type(ArchiveEntryType.LYRICS)
        assert len(project.archive.entries) == len(entries) == 1
        assert edit_time.strftime(LABEL_TIMESTAMP_FORMAT) in entries[0].label
        assert entries[0].file_path.read_text(encoding="utf-8") == "verse one"
        assert lyrics.load_lyrics(project) == "verse two"

        await project_service.save_projects([project])
        listed = await project_service.list_projects()
        assert isinstance(listed, Ok)
        assert listed.ok_value == [project]

    def test_unchanged_lyrics_are_not_archived(self, project_service: ProjectService) -> None:
        project = project_service.create_project("Same")
        project_service.update_lyrics(project, "words")
        assert project_service.update_lyrics(project, "words") == Ok(None)
        assert project.archive.entries == []

    def test_failed_archive_keeps_old_lyrics(
        self,
        documents_root: Path,
        lyrics: LyricsFileManager,
        preferences_store: PreferencesStore,
        clock: FakeClock,
    ) -> None:
        archives = ArchiveManager(documents_root, lyrics, now=clock)
        service = ProjectService(None, preferences_store, lyrics, archives)  # type: ignore[arg-type]
        project = service.create_project("Blocked")
        service.update_lyrics(project, "first")
        (documents_root / "Archives").write_text("blocker", encoding="utf-8")

        result = service.update_lyrics(project, "second")
        assert isinstance(result, Err)
        assert lyrics.load_lyrics(project) == "first"


class TestArtworkAndAudio:
    def test_replace_artwork_archives_previous(self, project_service: ProjectService) -> None:
        old_art, new_art = make_png((255, 0, 0)), make_png((0, 0, 255))
        project = project_service.create_project("Art", artwork=old_art)
        result = project_service.replace_artwork(project, new_art)
        assert isinstance(result, Ok)
        entry = result.ok_value
        assert entry is not None
        assert entry.file_path.read_bytes() == old_art
        assert project.artwork == new_art

    def test_first_artwork_has_nothing_to_archive(self, project_service: ProjectService) -> None:
        project = project_service.create_project("Art")
        assert project_service.replace_artwork(project, make_png()) == Ok(None)
        assert project.artwork is not None

    def test_rejects_unreadable_artwork(self, project_service: ProjectService) -> None:
        project = project_service.create_project("Art", artwork=make_png())
        assert isinstance(project_service.replace_artwork(project, b"nope"), Err)
        assert project.archive.entries == []

    def test_replace_audio(self, project_service: ProjectService, tmp_path: Path) -> None:
        old, new = tmp_path / "demo.mp3", tmp_path / "master.mp3"
        old.write_bytes(b"demo")
        new.write_bytes(b"master")
        project = project_service.create_project("Song", files=[old])

        result = project_service.replace_audio(project, new)
        assert isinstance(result, Ok)
        entry = result.ok_value
        assert entry is not None
        assert entry.file_path.read_bytes() == b"demo"
        assert project.audio_files == [new]
        assert len(project.lyrics_files) == 1

    def test_add_files(self, project_service: ProjectService, tmp_path: Path) -> None:
        take = tmp_path / "take.mp3"
        take.write_bytes(b"a")
        sheet = tmp_path / "chords.pdf"
        project = project_service.create_project("Song")
        assert project_service.add_files(project, [take, sheet]) == Ok(None)
        assert take in project.files
        assert sheet in project.files

    def test_unsupported_audio(self, project_service: ProjectService, tmp_path: Path) -> None:
        project = project_service.create_project("Song")
        assert isinstance(project_service.replace_audio(project, tmp_path / "x.pdf"), Err)


class TestConversation:
    def test_record_conversation(self, project_service: ProjectService) -> None:
        project = project_service.create_project("Chat")
        messages = [
            ChatMessage(role="system", content="hidden"),
            ChatMessage(role="user", content="Need a bridge"),
            ChatMessage(role="assistant", content="Try a key change"),
        ]
        result = project_service.record_conversation(project, messages)
        assert isinstance(result, Ok)
        entry = result.ok_value
        assert entry is not None
        assert project.archive.entries == [entry]
        assert "hidden" not in entry.file_path.read_text(encoding="utf-8")

    def test_empty_conversation_is_skipped(self, project_service: ProjectService) -> None:
        project = project_service.create_project("Chat")
        assert project_service.record_conversation(project, []) == Ok(None)


class TestReorderAndDelete:
    @pytest.mark.asyncio
    async def test_move_and_delete(self, project_service: ProjectService) -> None:
        a = project_service.create_project("A")
        b = project_service.create_project("B")
        await project_service.save_projects([a, b])

        moved = await project_service.move_project([a, b], 1, 0)
        assert isinstance(moved, Ok)
        projects, prefs = moved.ok_value
        assert prefs.project_order == [b.id, a.id]

        bad = await project_service.move_project(projects, 5, 0)
        assert isinstance(bad, Err)

        deleted = await project_service.delete_project(projects, b.id, with_archive=True)
        assert isinstance(deleted, Ok)
        assert (await project_service.list_projects()).ok_value == [a]

    @pytest.mark.asyncio
    async def test_get_project(self, project_service: ProjectService) -> None:
        a = project_service.create_project("A")
        await project_service.save_projects([a])
        assert (await project_service.get_project(a.id)) == Ok(a)
        assert isinstance(await project_service.get_project("missing"), Err)


class TestGradient:
    def test_dominant_color(self) -> None:
        assert dominant_color(make_png((10, 200, 30))) == (10, 200, 30)
        assert dominant_color(b"junk") is None

    def test_no_artwork_uses_default(self) -> None:
        assert gradient_colors([Project(title="x")], PreferencesRecord()) == DEFAULT_GRADIENT

    def test_single_and_multiple_artworks(self) -> None:
        red = Project(title="r", artwork=make_png((255, 0, 0)))
        green = Project(title="g", artwork=make_png((0, 255, 0)))
        blue = Project(title="b", artwork=make_png((0, 0, 255)))
        prefs = PreferencesRecord()
        assert gradient_colors([red], prefs) == [(255, 0, 0, 1.0), (255, 0, 0, 0.6)]
        assert gradient_colors([red, green], prefs) == [(255, 0, 0, 1.0), (0, 255, 0, 0.8)]
        assert gradient_colors([red, green, blue], prefs) == [(255, 0, 0, 1.0), (0, 0, 255, 0.7)]

    def test_selected_mode_uses_selection(self) -> None:
        red = Project(title="r", artwork=make_png((255, 0, 0)))
        blue = Project(title="b", artwork=make_png((0, 0, 255)))
        prefs = PreferencesRecord(gradient_mode=GradientMode.SELECTED, selected_project_ids=[blue.id])
        assert gradient_colors([red, blue], prefs) == [(0, 0, 255, 1.0), (0, 0, 255, 0.6)]

    @pytest.mark.asyncio
    async def test_stale_selection_falls_back_to_all_end_to_end(
        self,
        project_service: ProjectService,
        preferences_store: PreferencesStore,
    ) -> None:
        red = project_service.create_project("r", artwork=make_png((255, 0, 0)))
        blue = project_service.create_project("b", artwork=make_png((0, 0, 255)))
        await project_service.save_projects([red, blue])
        prefs = await preferences_store.load()
        await preferences_store.save(
            prefs.model_copy(
                update={
                    "gradient_mode": GradientMode.SELECTED,
                    "selected_project_ids": ["deleted-project"],
                }
            )
        )

        reloaded_prefs = await preferences_store.load()
        assert reloaded_prefs.gradient_mode is GradientMode.SELECTED
        projects = (await project_service.list_projects(reloaded_prefs)).ok_value
        all_prefs = reloaded_prefs.model_copy(update={"gradient_mode": GradientMode.ALL})
        assert gradient_colors(projects, reloaded_prefs) == gradient_colors(projects, all_prefs)
        assert gradient_colors(projects, reloaded_prefs) == [(255, 0, 0, 1.0), (0, 0, 255, 0.8)]


class TestExport:
    def test_sanitize_file_name(self) -> None:
        assert sanitize_file_name(' a/b:c*d? ') == "a_b_c_d_"

    def test_project_info(self) -> None:
        project = Project(title="Riverbed", use_bold=True)
        info = project_info(project, datetime(2026, 10, 18, 9, 0))
        assert "Project Title: Riverbed" in info
        assert "- Bold: Yes" in info
        assert "- Italic: No" in info

    @pytest.mark.asyncio
    async def test_export_project(
        self,
        project_service: ProjectService,
        lyrics: LyricsFileManager,
        documents_root: Path,
        tmp_path: Path,
    ) -> None:
        audio = tmp_path / "take.mp3"
        audio.write_bytes(b"audio")
        project = project_service.create_project("Riverbed", artwork=make_png(), files=[audio])
        project_service.update_lyrics(project, "verse one")
        project_service.update_lyrics(project, "verse two")

        exporter = ExportService(documents_root, lyrics)
        result = await exporter.export_project(project)
        assert isinstance(result, Ok)
        path = result.ok_value
        assert path == documents_root / "Riverbed_Export.zip"

        with zipfile.ZipFile(path) as zf:
            names = set(zf.namelist())
            assert "Riverbed/Current_Lyrics.txt" in names
            assert "Riverbed/Current_take.mp3" in names
            assert "Riverbed/Current_Artwork_Original.png" in names
            assert "Riverbed/Current_Artwork_With_Title.png" in names
            assert "Riverbed/Project_Info.txt" in names
            archived = [n for n in names if n.startswith("Riverbed/Archive/Lyrics_")]
            assert len(archived) == 1
            assert zf.read("Riverbed/Current_Lyrics.txt") == b"verse two"
            assert zf.read(archived[0]) == b"verse one"

        again = await exporter.export_project(project)
        assert again == Ok(path)


def test_add_files_keeps_a_single_lyrics_file(
    project_service: ProjectService, lyrics: LyricsFileManager, tmp_path: Path
) -> None:
    project = project_service.create_project("Song")
    project_service.update_lyrics(project, "verse")
    notes = tmp_path / "notes.txt"
    notes.write_text("other words", encoding="utf-8")

    assert project_service.add_files(project, [notes]) == Ok(None)
    assert len(project.lyrics_files) == 1
    assert notes not in project.files
    assert lyrics.load_lyrics(project) == "verse"


def test_oversized_artwork_is_not_an_image() -> None:
    huge = png_header(200_000, 200_000)
    assert dominant_color(huge) is None
    assert artwork_with_title(huge, Project(title="Huge")) is None
