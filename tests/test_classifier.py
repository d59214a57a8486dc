"""Tests for the file classifier."""

from datetime import datetime, timezone

import pytest
from hypothesis import given, strategies as st

from game_unifier.models import FileCategory, FileRecord
from game_unifier.services.classifier import EXTENSION_MAP, FileClassifier
from game_unifier.services.errors import ClassificationError
from game_unifier.services.storage import extension_of


def make_record(name: str, is_directory: bool = False, size: int = 1024) -> FileRecord:
    return FileRecord(
        path=f"games/{name}",
        name=name,
        size=size,
        is_directory=is_directory,
        modified_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        extension="" if is_directory else extension_of(name),
    )


class TestClassify:
    """Category assignment from names and extensions."""

    @pytest.mark.parametrize(
        "name,category",
        [
            ("game.zip", FileCategory.ARCHIVE),
            ("game.7z", FileCategory.ARCHIVE),
            ("game.tar", FileCategory.ARCHIVE),
            ("Game.EXE", FileCategory.EXECUTABLE),
            ("start.sh", FileCategory.EXECUTABLE),
            ("game.msi", FileCategory.INSTALLER),
            ("game.deb", FileCategory.INSTALLER),
            ("Super Mario World (USA).sfc", FileCategory.ROM),
            ("disc.iso", FileCategory.ROM),
            ("readme.nfo", FileCategory.DOCUMENT),
            ("cover.png", FileCategory.IMAGE),
            ("save.dat", FileCategory.UNKNOWN),
            ("noextension", FileCategory.UNKNOWN),
        ],
    )
    def test_extension_table(self, name: str, category: FileCategory) -> None:
        assert FileClassifier().classify(make_record(name)).category == category

    @pytest.mark.parametrize("name", ["game.z01", "game.r00", "game.7z.001", "GAME.Z12"])
    def test_split_volumes_are_archives(self, name: str) -> None:
        assert FileClassifier().classify(make_record(name)).category == FileCategory.ARCHIVE

    @pytest.mark.parametrize(
        "name",
        ["setup_witcher.exe", "Install.exe", "GameInstaller.bat", "inst32.exe"],
    )
    def test_installer_names_relabel_executables(self, name: str) -> None:
        classified = FileClassifier().classify(make_record(name))

        assert classified.category == FileCategory.INSTALLER
        assert classified.is_executable

    def test_installer_word_does_not_relabel_non_executables(self) -> None:
        classified = FileClassifier().classify(make_record("setup_notes.txt"))

        assert classified.category == FileCategory.DOCUMENT
        assert not classified.is_executable

    def test_directory_ignores_extension(self) -> None:
        classified = FileClassifier().classify(make_record("backup.zip", is_directory=True))

        assert classified.category == FileCategory.DIRECTORY
        assert not classified.is_executable

    def test_platform_installers_are_executable(self) -> None:
        classifier = FileClassifier()
        msi = classifier.classify(make_record("game.msi"))

        assert msi.is_executable
        assert classifier.is_installer(msi)
        assert classifier.is_platform_installer(msi)
        assert not classifier.is_platform_installer(classifier.classify(make_record("setup.exe")))

    @given(st.sampled_from(sorted(EXTENSION_MAP)), st.text(alphabet="abcxyz", min_size=1, max_size=8))
    def test_classification_is_case_insensitive(self, extension: str, stem: str) -> None:
        classifier = FileClassifier()
        lower = classifier.classify(make_record(f"{stem}.{extension}"))
        upper = classifier.classify(make_record(f"{stem}.{extension.upper()}"))

        assert lower.category == upper.category


    @pytest.mark.parametrize("name,size", [("", 10), ("doom.exe", -1)])
    def test_malformed_records_raise(self, name: str, size: int) -> None:
        with pytest.raises(ClassificationError) as exc_info:
            FileClassifier().classify(make_record(name, size=size))

        assert exc_info.value.path == f"games/{name}"
        assert exc_info.value.recoverable


class TestHelpers:
    """Predicate helpers and ROM systems."""

    def test_game_executable_excludes_installers(self) -> None:
        classifier = FileClassifier()

        assert classifier.is_game_executable(classifier.classify(make_record("game.exe")))
        assert not classifier.is_game_executable(classifier.classify(make_record("setup.exe")))
        assert not classifier.is_game_executable(classifier.classify(make_record("game.zip")))

    def test_rom_and_archive_predicates(self) -> None:
        classifier = FileClassifier()

        assert classifier.is_rom(classifier.classify(make_record("zelda.gba")))
        assert classifier.is_archive(classifier.classify(make_record("zelda.rar")))
        assert not classifier.is_rom(classifier.classify(make_record("zelda.rar")))

    @pytest.mark.parametrize(
        "extension,system",
        [("sfc", "SNES"), ("Z64", "Nintendo 64"), ("gba", "Game Boy Advance"), ("iso", "Disc Image")],
    )
    def test_rom_system(self, extension: str, system: str) -> None:
        assert FileClassifier.rom_system(extension) == system

    def test_rom_system_unknown(self) -> None:
        assert FileClassifier.rom_system("exe") is None
