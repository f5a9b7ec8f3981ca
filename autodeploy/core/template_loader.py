"""Template and stack catalog loading for generated configuration files."""
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound


class TemplateLoader:
    """Loads Jinja2 templates and the stack catalog."""

    def __init__(self, templates_dir: Optional[Path] = None):
        """Initialize template loader.

        Args:
            templates_dir: Path to templates directory. Defaults to autodeploy/templates/
        """
        if templates_dir is None:
            # Loader is in autodeploy/core/, templates are in autodeploy/templates/
            templates_dir = Path(__file__).parent.parent / "templates"
        self.templates_dir = templates_dir
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, **context: Any) -> str:
        """Render a template file.

        Args:
            template_name: File name inside the templates directory
            **context: Template variables

        Returns:
            Rendered text

        Raises:
            FileNotFoundError: If the template doesn't exist
        """
        try:
            template = self.jinja_env.get_template(template_name)
        except TemplateNotFound as e:
            raise FileNotFoundError(
                f"Template '{template_name}' not found in {self.templates_dir}"
            ) from e
        return template.render(**context)

    def list_templates(self) -> List[str]:
        """List available template names."""
        if not self.templates_dir.exists():
            return []
        return sorted(f.name for f in self.templates_dir.glob("*.j2"))

    def load_stack_catalog(self) -> Dict[str, Dict[str, Any]]:
        """Load stack metadata (description, markers, tools) in menu order."""
        catalog_path = self.templates_dir / "stacks.yml"
        if not catalog_path.exists():
            return {}

        with open(catalog_path) as f:
            return yaml.safe_load(f) or {}


_loader: Optional[TemplateLoader] = None


def get_template_loader() -> TemplateLoader:
    """Return the shared TemplateLoader for the packaged templates."""
    global _loader
    if _loader is None:
        _loader = TemplateLoader()
    return _loader
