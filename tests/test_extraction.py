"""
Tests for the extraction pipeline and its table builders.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from extraction.cli import app as extract_cli
from extraction.colors import build_color_table
from extraction.models import RawSpecies
from extraction.multipliers import IDENTITY_MULTIPLIER
from extraction.pipeline import ExtractionConfig, ExtractionPipeline, load_values_document
from extraction.species import build_species_entry, build_species_table
from infographic.models import SpeciesMetaEntry
from infographic.utils.errors import UpstreamDocumentError

IDENTITY = [IDENTITY_MULTIPLIER] * 12


def stat_row(base: float = 100.0):
    return [base, 0.2, 0.1, 0.5, 0.4]


@pytest.fixture
def values_document():
    return {
        "colorDefinitions": [
            ["Red", [1.0, 0.0, 0.0, 1.0]],
            ["Green", [0.0, 1.0, 0.0, 1.0]],
            ["Blue", [0.0, 0.0, 1.0, 1.0]],
        ],
        "dyeDefinitions": [
            ["Black Coloring", [0.0, 0.0, 0.0, 1.0]],
            ["White Coloring", [1.0, 1.0, 1.0, 1.0]],
        ],
        "species": [
            {
                "name": "Rex",
                "blueprintPath": "/Game/Rex",
                "statNames": {"0": "Health"},
                "colors": [
                    {"name": "Body", "colors": ["Red"]},
                    None,
                    {"name": "Belly"},
                    None,
                    None,
                    {"name": "Highlights"},
                ],
                "fullStatsRaw": [stat_row(1100), stat_row(420), None, stat_row(150)],
                "TamedBaseHealthMultiplier": 0.96,
                "statImprintMult": [0.2, 0, 0.2],
            },
            {"name": "Dodo", "fullStatsRaw": [stat_row(40)]},
        ],
    }


@pytest.fixture
def upstream_files(tmp_path, values_document):
    values_path = tmp_path / "values.json"
    values_path.write_text(json.dumps(values_document))
    multipliers_path = tmp_path / "serverMultipliers.json"
    multipliers_path.write_text(
        json.dumps(
            {
                "serverMultiplierDictionary": {
                    "official": {"statMultipliers": [[2, 2, 2, 2]] * 12},
                }
            }
        )
    )
    return values_path, multipliers_path


def make_config(tmp_path, upstream_files, preset="official"):
    values_path, multipliers_path = upstream_files
    return ExtractionConfig(
        values_path=values_path,
        multipliers_path=multipliers_path,
        output_dir=tmp_path / "out",
        preset=preset,
    )


class TestColorTable:
    """Test color ID assignment."""

    def test_base_and_dye_ranges(self):
        colors = build_color_table(
            [("A", (0, 0, 0, 1)), ("B", (0, 0, 0, 1)), ("C", (0, 0, 0, 1))],
            [("X", (1, 1, 1, 1)), ("Y", (1, 1, 1, 1))],
        )
        assert [c.id for c in colors if not c.is_dye] == [1, 2, 3]
        assert [c.id for c in colors if c.is_dye] == [201, 202]
        assert len({c.id for c in colors}) == len(colors)

    def test_ids_follow_input_order(self):
        colors = build_color_table([("A", (0, 0, 0, 1)), ("B", (1, 1, 1, 1))], [])
        assert [(c.id, c.name) for c in colors] == [(1, "A"), (2, "B")]

        reordered = build_color_table([("B", (1, 1, 1, 1)), ("A", (0, 0, 0, 1))], [])
        assert [(c.id, c.name) for c in reordered] == [(1, "B"), (2, "A")]

    def test_empty_inputs(self):
        assert build_color_table([], []) == []

    def test_serialized_shape(self):
        entry = build_color_table([], [("Dye", (0.5, 0.25, 0.0, 1.0))])[0]
        assert entry.to_json_dict() == {
            "id": 201,
            "name": "Dye",
            "linearRgba": [0.5, 0.25, 0.0, 1.0],
            "isDye": True,
        }


class TestSpeciesMeta:
    """Test per-species derivation."""

    def test_regions_and_names(self, values_document):
        rex = RawSpecies.model_validate(values_document["species"][0])
        entry = build_species_entry(rex, IDENTITY)

        assert entry.enabled_color_regions == [True, False, True, False, False, True]
        assert entry.color_region_names == ["Body", None, "Belly", None, None, "Highlights"]

    def test_missing_colors_disables_all_regions(self, values_document):
        dodo = RawSpecies.model_validate(values_document["species"][1])
        entry = build_species_entry(dodo, IDENTITY)

        assert entry.enabled_color_regions == [False] * 6
        assert entry.color_region_names == [None] * 6

    def test_stat_slots_always_twelve(self, values_document):
        rex = RawSpecies.model_validate(values_document["species"][0])
        entry = build_species_entry(rex, IDENTITY)

        assert len(entry.full_stats_raw) == 12
        assert entry.used_stats == [True, True, False, True] + [False] * 8
        assert entry.full_stats_raw[2] is None

    def test_used_stats_mirror_stat_data(self, values_document):
        table = build_species_table(
            [RawSpecies.model_validate(s) for s in values_document["species"]], IDENTITY
        )
        for entry in table.values():
            for used, raw in zip(entry.used_stats, entry.full_stats_raw):
                assert used == (raw is not None)

    def test_short_stat_rows_count_as_missing(self):
        raw = RawSpecies(name="Odd", full_stats_raw=[[1.0, 2.0, 3.0]])
        entry = build_species_entry(raw, IDENTITY)
        assert entry.full_stats_raw[0] is None
        assert entry.used_stats[0] is False

    def test_multipliers_applied_per_slot(self):
        multipliers = list(IDENTITY)
        multipliers[1] = (2.0, 3.0, 4.0, 5.0)
        raw = RawSpecies(name="Rex", full_stats_raw=[stat_row(), stat_row()])
        entry = build_species_entry(raw, multipliers)

        assert entry.full_stats_raw[0] == (100.0, 0.2, 0.1, 0.5, 0.4)
        assert entry.full_stats_raw[1] == pytest.approx((100.0, 1.0, 0.4, 1.0, 1.2))

    def test_defaults(self, values_document):
        dodo = RawSpecies.model_validate(values_document["species"][1])
        entry = build_species_entry(dodo, IDENTITY)

        assert entry.tamed_base_health_multiplier == 1.0
        assert entry.stat_imprint_multipliers == [0.0] * 12
        assert entry.stat_names is None

    def test_imprint_multipliers_padded(self, values_document):
        rex = RawSpecies.model_validate(values_document["species"][0])
        entry = build_species_entry(rex, IDENTITY)

        assert entry.stat_imprint_multipliers == [0.2, 0.0, 0.2] + [0.0] * 9
        assert entry.tamed_base_health_multiplier == 0.96

    def test_duplicate_names_keep_last(self):
        table = build_species_table(
            [
                RawSpecies(name="Rex", full_stats_raw=[stat_row(1)]),
                RawSpecies(name="Rex", full_stats_raw=[stat_row(2)]),
            ],
            IDENTITY,
        )
        assert list(table) == ["Rex"]
        assert table["Rex"].full_stats_raw[0][0] == 2


class TestExtractionPipeline:
    """Test the end-to-end batch run."""

    def test_writes_both_tables(self, tmp_path, upstream_files):
        result = ExtractionPipeline(make_config(tmp_path, upstream_files)).run()

        colors = json.loads(result.colors_path.read_text())
        species = json.loads(result.species_path.read_text())

        assert [c["id"] for c in colors] == [1, 2, 3, 201, 202]
        assert list(species) == ["Rex", "Dodo"]
        assert result.warnings == []
        assert result.colors_bytes > 0
        assert result.species_bytes > 0

        # Written tables load back as valid entries
        for entry in species.values():
            SpeciesMetaEntry.model_validate(entry)

    def test_preset_applied(self, tmp_path, upstream_files):
        result = ExtractionPipeline(make_config(tmp_path, upstream_files)).run()
        rex = json.loads(result.species_path.read_text())["Rex"]

        assert rex["fullStatsRaw"][0] == pytest.approx([1100, 0.4, 0.2, 1.0, 0.8])

    def test_missing_preset_falls_back_to_identity(self, tmp_path, upstream_files):
        result = ExtractionPipeline(make_config(tmp_path, upstream_files, preset="unknown")).run()
        rex = json.loads(result.species_path.read_text())["Rex"]

        assert rex["fullStatsRaw"][0] == [1100, 0.2, 0.1, 0.5, 0.4]
        assert len(result.warnings) == 1
        assert "unknown" in result.warnings[0]

    def test_missing_multiplier_document_falls_back(self, tmp_path, upstream_files):
        values_path, multipliers_path = upstream_files
        multipliers_path.unlink()

        result = ExtractionPipeline(make_config(tmp_path, upstream_files)).run()

        assert result.species_path.exists()
        assert result.warnings

    def test_rerun_is_byte_identical(self, tmp_path, upstream_files):
        config = make_config(tmp_path, upstream_files)
        first = ExtractionPipeline(config).run()
        colors_before = first.colors_path.read_bytes()
        species_before = first.species_path.read_bytes()

        second = ExtractionPipeline(config).run()

        assert second.colors_path.read_bytes() == colors_before
        assert second.species_path.read_bytes() == species_before

    def test_missing_values_document_is_fatal(self, tmp_path, upstream_files):
        values_path, _ = upstream_files
        values_path.unlink()
        config = make_config(tmp_path, upstream_files)

        with pytest.raises(UpstreamDocumentError):
            ExtractionPipeline(config).run()

        assert not (config.output_dir / "colors.json").exists()
        assert not (config.output_dir / "species-meta.json").exists()

    def test_unparsable_values_document_is_fatal(self, tmp_path):
        path = tmp_path / "values.json"
        path.write_text("{ definitely not json")

        with pytest.raises(UpstreamDocumentError, match="invalid JSON"):
            load_values_document(path)

    def test_malformed_values_document_is_fatal(self, tmp_path):
        path = tmp_path / "values.json"
        path.write_text(json.dumps({"species": [{"fullStatsRaw": []}]}))

        with pytest.raises(UpstreamDocumentError, match="unexpected structure"):
            load_values_document(path)

    def test_non_string_stat_names_passed_through(self, tmp_path, values_document):
        values_document["species"][0]["statNames"] = {"0": "Health", "7": 5, "extra": {"a": 1}}
        values_path = tmp_path / "values.json"
        values_path.write_text(json.dumps(values_document))
        config = ExtractionConfig(
            values_path=values_path,
            multipliers_path=tmp_path / "serverMultipliers.json",
            output_dir=tmp_path / "out",
        )

        result = ExtractionPipeline(config).run()
        rex = json.loads(result.species_path.read_text())["Rex"]

        assert rex["statNames"] == {"0": "Health", "7": 5, "extra": {"a": 1}}
        SpeciesMetaEntry.model_validate(rex)

    def test_failed_write_leaves_no_partial_output(self, tmp_path, upstream_files, monkeypatch):
        config = make_config(tmp_path, upstream_files)
        original_write_text = Path.write_text

        def failing_write_text(self, *args, **kwargs):
            if self.name == ".species-meta.json.tmp":
                raise OSError("disk full")
            return original_write_text(self, *args, **kwargs)

        monkeypatch.setattr(Path, "write_text", failing_write_text)

        with pytest.raises(OSError, match="disk full"):
            ExtractionPipeline(config).run()

        assert not (config.output_dir / "colors.json").exists()
        assert not (config.output_dir / "species-meta.json").exists()
        assert list(config.output_dir.glob(".*.tmp")) == []


class TestExtractCli:
    """Test the ark-extract command."""

    def test_cli_reports_sizes(self, tmp_path, upstream_files):
        values_path, multipliers_path = upstream_files
        out = tmp_path / "cli-out"

        result = CliRunner().invoke(
            extract_cli,
            [str(values_path), "--multipliers", str(multipliers_path), "--output-dir", str(out)],
        )

        assert result.exit_code == 0, result.output
        assert "Wrote 5 colors" in result.output
        assert "Wrote 2 species" in result.output
        assert (out / "species-meta.json").exists()

    def test_cli_fails_on_missing_document(self, tmp_path):
        result = CliRunner().invoke(
            extract_cli,
            [str(tmp_path / "missing.json"), "--output-dir", str(tmp_path / "out")],
        )
        assert result.exit_code == 1
        assert "Extraction failed" in result.output
