"""Tests for filename-to-title extraction."""

import string

import pytest
from hypothesis import given, settings, strategies as st

from game_unifier.services.name_extractor import NameExtractor


undecorated_stems = st.text(alphabet=string.ascii_letters + " ", min_size=1, max_size=30)


class TestScenarios:
    """Real-world release names."""

    def test_gog_installer(self) -> None:
        extracted = NameExtractor().extract("setup_alone_in_the_dark_3_1.0_cs_(28191).exe")

        assert extracted.clean_name == "Alone In The Dark 3"
        assert extracted.platform == "Windows"
        assert extracted.version == "1.0"
        assert extracted.confidence == pytest.approx(0.8)

    def test_no_intro_rom(self) -> None:
        extracted = NameExtractor().extract("Super Mario World (USA) (En,Fr,De).sfc")

        assert extracted.clean_name == "Super Mario World"
        assert extracted.platform == "Super Nintendo"
        assert extracted.region == "USA"
        assert extracted.languages == ("En", "Fr", "De")
        assert extracted.confidence == pytest.approx(0.85)

    def test_short_region_code(self) -> None:
        extracted = NameExtractor().extract("Zelda (E).gba")

        assert extracted.clean_name == "Zelda"
        assert extracted.region == "Europe"
        assert extracted.platform == "Game Boy Advance"

    def test_version_with_prefix(self) -> None:
        extracted = NameExtractor().extract("half_life_v1.1.exe")

        assert extracted.clean_name == "Half Life"
        assert extracted.version == "1.1"

    def test_trailing_number_noise_collapses(self) -> None:
        extracted = NameExtractor().extract("alone_in_the_dark_3_1_0.txt")

        assert extracted.clean_name == "Alone In The Dark 3"
        assert extracted.confidence == 0.5

    def test_single_trailing_number_is_kept(self) -> None:
        assert NameExtractor().extract("quake_2.txt").clean_name == "Quake 2"

    def test_bit_width_and_build_tags(self) -> None:
        extracted = NameExtractor().extract("setup_cyberpunk_(64bit)_(12345).exe")

        assert extracted.clean_name == "Cyberpunk"

    def test_unknown_trailing_code_is_kept(self) -> None:
        assert NameExtractor().extract("doom_hd.exe").clean_name == "Doom Hd"

    def test_acronyms_stay_uppercase(self) -> None:
        assert NameExtractor().extract("GTA_San_Andreas.exe").clean_name == "GTA San Andreas"

    def test_brackets_removed(self) -> None:
        extracted = NameExtractor().extract("Sonic [!].smd")

        assert extracted.clean_name == "Sonic"
        assert extracted.platform == "Sega Genesis"

    def test_dos_batch_file(self) -> None:
        assert NameExtractor().extract("commander_keen.bat").platform == "DOS"


class TestPrefixes:
    """Installer prefix words are removed only as whole words."""

    @pytest.mark.parametrize(
        "filename,name",
        [
            ("installer_doom.exe", "Doom"),
            ("install-doom.exe", "Doom"),
            ("setup_game_quake.exe", "Quake"),
            ("gameboy_tetris.zip", "Gameboy Tetris"),
            ("setupper.exe", "Setupper"),
            ("installation_guide.txt", "Installation Guide"),
        ],
    )
    def test_prefix_words(self, filename: str, name: str) -> None:
        assert NameExtractor().extract(filename).clean_name == name


class TestMultiPart:
    """Part suffixes are stripped and recorded."""

    @pytest.mark.parametrize(
        "filename,name,part",
        [
            ("witcher.part2.rar", "Witcher", 2),
            ("setup_witcher-2.bin", "Witcher", 2),
            ("doom.z01", "Doom", 1),
            ("quake.7z.002", "Quake", 2),
            ("heretic.r00", "Heretic", 0),
        ],
    )
    def test_part_detection(self, filename: str, name: str, part: int) -> None:
        extracted = NameExtractor().extract(filename)

        assert extracted.clean_name == name
        assert extracted.is_part
        assert extracted.part_number == part
        assert extracted.confidence == pytest.approx(0.55)

    def test_dash_number_outside_bin_is_not_a_part(self) -> None:
        extracted = NameExtractor().extract("worms-2.exe")

        assert not extracted.is_part
        assert extracted.part_number is None


class TestConfidence:
    """Confidence stays within its bounds."""

    @given(undecorated_stems)
    def test_undecorated_names_score_base(self, stem: str) -> None:
        extracted = NameExtractor().extract(f"{stem}.txt")

        assert extracted.confidence == 0.5
        assert not extracted.is_part

    @given(undecorated_stems, st.integers(min_value=1, max_value=99))
    def test_undecorated_parts_score_base_plus_part(self, stem: str, part: int) -> None:
        extracted = NameExtractor().extract(f"{stem}.part{part}.rar")

        assert extracted.is_part
        assert extracted.part_number == part
        assert extracted.confidence == pytest.approx(0.55)

    @given(st.text(alphabet=string.printable, max_size=60))
    @settings(max_examples=200)
    def test_confidence_bounds(self, filename: str) -> None:
        confidence = NameExtractor().extract(filename).confidence

        assert 0.5 <= confidence <= 0.95

    def test_everything_detected_is_capped(self) -> None:
        extracted = NameExtractor().extract("Mario (USA)_v1.2.part3.sfc")

        assert extracted.platform == "Super Nintendo"
        assert extracted.region == "USA"
        assert extracted.version == "1.2"
        assert extracted.confidence == pytest.approx(0.95)
