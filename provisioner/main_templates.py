"""Shared Jinja2Templates instance used by the CLI and the routers."""
from pathlib import Path

from fastapi.templating import Jinja2Templates

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=BASE_DIR / "templates")
# Plain-text summaries
templates.env.autoescape = False
templates.env.trim_blocks = True
templates.env.lstrip_blocks = True


def render_summary(template_name: str, summary) -> str:
    return templates.get_template(template_name).render(summary=summary)
