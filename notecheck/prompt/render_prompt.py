"""Render prompt templates in notecheck/prompt/promptFiles using pystache.

Templates come in system/user pairs. Partials listed for a template are
loaded from the same directory, with any wrapping code fence stripped so
files written as ```markdown blocks still work as partials.

Usage:
    python -m notecheck.prompt.render_prompt [template_filename] [context.json]
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pystache

PROMPTS_DIR = Path(__file__).parent / "promptFiles"

SPELLCHECK_TEMPLATES = ("system_spellcheck.md", "user_spellcheck.md")
TERMINOLOGY_TEMPLATES = ("system_terminology.md", "user_terminology.md")

# Map of template to required partials
_TEMPLATE_PARTIALS: dict[str, list[str]] = {
    "system_spellcheck.md": ["issue_categories", "output_format"],
}


def _read_prompt(name: str) -> str:
    p = PROMPTS_DIR / name
    if not p.exists():
        raise FileNotFoundError(f"Prompt file not found: {p}")
    return p.read_text(encoding="utf-8")


def _strip_code_fences(s: str) -> str:
    """Strip a single leading and trailing code-fence block if present."""
    lines = s.splitlines()
    if not lines:
        return s
    if lines[0].lstrip().startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].lstrip().startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _renderer(template_names: tuple[str, ...]) -> pystache.Renderer:
    partial_names: set[str] = set()
    for name in template_names:
        partial_names.update(_TEMPLATE_PARTIALS.get(name, []))

    partials = {
        partial_name: _strip_code_fences(_read_prompt(f"{partial_name}.md"))
        for partial_name in partial_names
    }
    # Prompts are plain text; HTML escaping would mangle apostrophes in notes
    return pystache.Renderer(partials=partials, escape=lambda value: value)


def render_template(template_name: str, context: dict[str, Any] | None = None) -> str:
    renderer = _renderer((template_name,))
    return renderer.render(_read_prompt(template_name), context or {}).strip()


def render_prompts(
    system_template: str,
    user_template: str,
    context: dict[str, Any] | None = None,
) -> tuple[str, str]:
    """Render a system and user prompt pair from two separate templates.

    Returns:
        (system_prompt, user_prompt)
    """
    renderer = _renderer((system_template, user_template))
    rendered_system = renderer.render(_read_prompt(system_template), context or {})
    rendered_user = renderer.render(_read_prompt(user_template), context or {})
    return rendered_system.strip(), rendered_user.strip()


def _load_context(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


if __name__ == "__main__":
    tpl = sys.argv[1] if len(sys.argv) > 1 else SPELLCHECK_TEMPLATES[0]
    ctx = None
    if len(sys.argv) > 2:
        ctx = _load_context(sys.argv[2])
    print(render_template(tpl, ctx))
