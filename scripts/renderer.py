"""Report rendering to JSON or to markdown from Jinja2 templates."""

import json
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from report import Report


def render_json(report: Report, indent: int = 2) -> str:
    """Render the report as JSON, keeping field and issue order."""
    return json.dumps(report.to_dict(), indent=indent, ensure_ascii=False)


def render_markdown(report: Report, template_path: Path, repositories: list[str]) -> str:
    """Render the report to markdown using a Jinja2 template."""
    template_dir = template_path.parent
    template_name = template_path.name

    env = Environment(loader=FileSystemLoader(template_dir))
    template = env.get_template(template_name)

    context = {
        **report.to_dict(),
        "repositories": repositories,
    }

    return template.render(**context)
