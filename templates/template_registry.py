import os
import jinja2
from typing import Optional, Dict, Any

SWAGGER_UI_VERSION = "5.11.0"


class TemplateRegistry:
    def __init__(self):
        """
        Initialize the Jinja2 environment and register the built-in templates.
        """
        self.templates = {}
        self.jinja_env = self._create_jinja_environment()
        self._register_built_in_templates()

    def _create_jinja_environment(self) -> jinja2.Environment:
        """
        Set up the Jinja2 environment over the packaged template directory.
        """
        base_dir = os.path.join(os.path.dirname(__file__), 'templates')

        return jinja2.Environment(
            loader=jinja2.FileSystemLoader(base_dir),
            autoescape=jinja2.select_autoescape(['html', 'xml', 'jinja2']),
            trim_blocks=True,
            lstrip_blocks=True
        )

    def _register_built_in_templates(self):
        self.register_template('swagger_ui', 'swagger_ui.html.jinja2')

    def register_template(self, name: str, template_path: str):
        """
        Register a template path under a unique name.
        :param name: Unique name to identify this template
        :param template_path: Relative path to the template file
        """
        self.templates[name] = template_path

    def get_template(self, name: str) -> jinja2.Template:
        """
        Retrieve a Jinja2 template by registered name.
        :raises ValueError: If the template name is not found
        """
        if name not in self.templates:
            raise ValueError(f"Template '{name}' not registered")
        return self.jinja_env.get_template(self.templates[name])

    def render_template(self, name: str, context: Optional[Dict[str, Any]] = None) -> str:
        template = self.get_template(name)
        return template.render(**(context or {}))

    def render_swagger_ui(self, spec_url: str = "/swagger/json", title: str = "Delay Proxy API") -> str:
        return self.render_template('swagger_ui', {
            "title": title,
            "spec_url": spec_url,
            "assets_base": f"https://cdn.jsdelivr.net/npm/swagger-ui-dist@{SWAGGER_UI_VERSION}",
        })
