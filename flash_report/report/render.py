"""Render reports to HTML through Jinja2 templates."""
from __future__ import annotations

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..models.violation import Report

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / 'templates'
DEFAULT_TEMPLATE = 'report.html.j2'

_METRIC_TITLES = {
    'luminance': 'Luminance flashes',
    'red': 'Red saturation flashes',
}


def build_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(['html', 'html.j2']),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters['metric_title'] = metric_title
    return env


def metric_title(metric: str) -> str:
    return _METRIC_TITLES.get(metric, metric.replace('_', ' ').capitalize())


def render_report(
    report: Report,
    *,
    template_name: str = DEFAULT_TEMPLATE,
    env: Environment | None = None,
) -> str:
    environment = env or build_environment()
    template = environment.get_template(template_name)
    return template.render(report=report)


def write_report(path: Path, report: Report, *, template_name: str = DEFAULT_TEMPLATE) -> None:
    """Render ``report`` and write it as UTF-8 markup."""

    markup = render_report(report, template_name=template_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(markup, encoding='utf-8')
    logger.debug('Rendered %d bytes with %s', len(markup), template_name)
