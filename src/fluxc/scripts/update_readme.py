#!/usr/bin/env python3
"""Regenerate the generated sections of README.md.

`## Usage` comes from `fluxc --help`, `## Patterns` from the preset table and
`## Colors` from the named colors, so the README cannot drift from the code.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from markdown_it import MarkdownIt

from fluxc.lib.models import NamedColor, PresetPattern

ROOT = Path(__file__).resolve().parent.parent.parent.parent
README_PATH = ROOT / "README.md"


def get_top_level_help() -> str:
    env = os.environ.copy()
    env["COLUMNS"] = "80"
    return subprocess.check_output(
        [sys.executable, "-m", "fluxc.main", "--help"],
        cwd=ROOT,
        env=env,
        text=True,
    ).rstrip()


def usage_lines(help_text: str) -> list[str]:
    return ["```text", "fluxc --help", help_text, "```"]


def pattern_lines() -> list[str]:
    lines = [
        "Names accepted by `fluxc pattern NAME`.",
        "",
        "| Code | Name |",
        "|---|---|",
    ]
    lines.extend(f"| `0x{p.value:02x}` | `{p.label}` |" for p in PresetPattern)
    return lines


def color_lines() -> list[str]:
    lines = [
        "Names accepted by `fluxc color --name` and `fluxc flash --name`.",
        "",
        "| Name | R | G | B |",
        "|---|---|---|---|",
    ]
    for color in NamedColor:
        red, green, blue = color.rgb
        lines.append(f"| `{color.name}` | {red} | {green} | {blue} |")
    return lines


def h2_headings(readme_text: str) -> list[tuple[str, int]]:
    """Return `(title, line)` for every level-two heading, in order."""
    tokens = MarkdownIt().parse(readme_text)
    headings = []
    for index, token in enumerate(tokens[:-1]):
        if token.type != "heading_open" or token.tag != "h2" or not token.map:
            continue
        inline = tokens[index + 1]
        if inline.type == "inline":
            headings.append((inline.content.strip(), token.map[0]))
    return headings


def find_section_bounds(readme_text: str, title: str) -> tuple[int, int]:
    """Line range of `## title`, from its heading up to the next h2 or EOF."""
    headings = h2_headings(readme_text)
    for position, (name, start) in enumerate(headings):
        if name != title:
            continue
        if position + 1 < len(headings):
            return start, headings[position + 1][1]
        return start, len(readme_text.splitlines())
    raise RuntimeError(f"Could not find '## {title}' in README.md.")


def replace_section(readme_text: str, title: str, body: list[str]) -> str:
    start, end = find_section_bounds(readme_text, title)
    lines = readme_text.splitlines()
    section = [f"## {title}", "", *body, ""]
    return "\n".join(lines[:start] + section + lines[end:]).rstrip() + "\n"


def update_readme(readme_text: str, help_text: str) -> str:
    sections = {
        "Usage": usage_lines(help_text),
        "Patterns": pattern_lines(),
        "Colors": color_lines(),
    }
    for title, body in sections.items():
        readme_text = replace_section(readme_text, title, body)
    return readme_text


def main() -> int:
    readme_text = README_PATH.read_text(encoding="utf-8")
    updated = update_readme(readme_text, get_top_level_help())

    if updated == readme_text:
        print("README is up to date.")
        return 0

    README_PATH.write_text(updated, encoding="utf-8")
    print("Updated README.md.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
