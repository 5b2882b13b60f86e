from pathlib import Path

import pytest

from fluxc.lib.models import NamedColor, PresetPattern
from fluxc.scripts.update_readme import (
    README_PATH,
    color_lines,
    find_section_bounds,
    pattern_lines,
    update_readme,
)

README = """# fluxc

Intro.

## Usage

```text
old help
```

## Patterns

stale

## Colors

stale

## Notes

- keep me
"""


def test_find_section_bounds():
    lines = README.splitlines()
    start, end = find_section_bounds(README, "Patterns")
    assert lines[start] == "## Patterns"
    assert lines[end] == "## Colors"


def test_last_section_runs_to_end_of_file():
    start, end = find_section_bounds(README, "Notes")
    assert (start, end) == (len(README.splitlines()) - 3, len(README.splitlines()))


def test_heading_inside_code_block_is_ignored():
    text = "# fluxc\n\n```text\n## Usage\n```\n\n## Notes\n"
    with pytest.raises(RuntimeError):
        find_section_bounds(text, "Usage")


def test_missing_section():
    with pytest.raises(RuntimeError):
        find_section_bounds("# fluxc\n\n## Notes\n", "Colors")


def test_update_readme_rewrites_generated_sections_only():
    updated = update_readme(README, "usage: fluxc [-h]")

    assert "old help" not in updated
    assert "stale" not in updated
    assert "fluxc --help\nusage: fluxc [-h]\n```" in updated
    assert "| `0x25` | `seven-color-cross-fade` |" in updated
    assert "| `0x38` | `seven-color-jumping` |" in updated
    assert "| `pink` | 255 | 192 | 203 |" in updated
    assert updated.startswith("# fluxc\n\nIntro.\n\n## Usage\n")
    assert updated.endswith("## Notes\n\n- keep me\n")


def test_update_readme_is_stable():
    once = update_readme(README, "usage: fluxc [-h]")
    assert update_readme(once, "usage: fluxc [-h]") == once


def test_tables_cover_every_pattern_and_color():
    assert len([line for line in pattern_lines() if line.startswith("| `0x")]) == len(
        PresetPattern
    )
    assert len([line for line in color_lines() if line.startswith("| `")]) == len(NamedColor)


def test_checked_in_readme_tables_are_current():
    readme_text = Path(README_PATH).read_text(encoding="utf-8")
    for line in pattern_lines() + color_lines():
        if line.startswith("|"):
            assert line in readme_text
