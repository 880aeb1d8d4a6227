from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from visa_checkout.config import settings

# shipped inside the package so installed copies find them too
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def render_template(template_path: str, **context) -> str:
    template = env.get_template(template_path)
    return template.render(**context)


def render_email(name: str, **context) -> str:
    """Render emails/<name> with the branding every email shares."""
    context.setdefault("app_name", settings.STORE_NAME)
    context.setdefault("app_url", settings.APP_URL)
    return render_template(f"emails/{name}", **context)
