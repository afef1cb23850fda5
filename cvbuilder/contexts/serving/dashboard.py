"""Dashboard page rendering."""

from pathlib import Path
from typing import List

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from cvbuilder.config import BuildConfig

DASHBOARD_TEMPLATE = "dashboard.html.jinja"


def list_source_files(config: BuildConfig) -> List[Path]:
    """Editable files directly inside the source directory."""
    if not config.source_dir.is_dir():
        return []
    return sorted(
        path
        for path in config.source_dir.iterdir()
        if path.is_file()
        and path.suffix in config.source_suffixes
        and not path.name.startswith(".")
    )


class DashboardRenderer:
    """Loads the dashboard template once and renders it per request."""

    def __init__(self):
        self.env = Environment(
            loader=PackageLoader("cvbuilder.contexts.serving", "templates"),
            # Catches silent failures
            undefined=StrictUndefined,
            autoescape=select_autoescape(["html", "jinja"]),
        )
        self.template = self.env.get_template(DASHBOARD_TEMPLATE)

    def render(self, config: BuildConfig) -> str:
        return self.template.render(
            title=f"{config.source.name} builder",
            pdf_name=config.output_path.name,
            source_files=[path.name for path in list_source_files(config)],
            compiler=config.compiler,
        )
