"""
Jinja2 template loader for rendered report text.

Report layouts live in soc_formatter/templates/ as .jinja2 files. Use
render_template() to render one with variables, or render_report() for the
standard "label / value / blank line" report body.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from soc_formatter.models.report import ReportSection

# Resolve templates/ relative to this file: soc_formatter/utils/rendering.py → soc_formatter/templates/
_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATES_DIR)),
    undefined=StrictUndefined,   # undefined variables raise instead of rendering as ""
    trim_blocks=True,            # strip newline after block tags
    lstrip_blocks=True,          # strip leading whitespace before block tags
    autoescape=False,            # plain text output
)


def render_template(name: str, **kwargs: object) -> str:
    """Render a Jinja2 template from the templates/ directory.

    Args:
        name: Template filename, e.g. "report.jinja2"
        **kwargs: Variables passed into the template.

    Raises:
        jinja2.TemplateNotFound: If the template file doesn't exist.
        jinja2.UndefinedError: If the template references a variable not in kwargs.
    """
    template = _env.get_template(name)
    return template.render(**kwargs)


def render_report(sections: Sequence[ReportSection]) -> str:
    """Render report sections as text with trailing whitespace trimmed."""
    return render_template("report.jinja2", sections=sections).rstrip()
