"""Template discovery and rendering."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jinja2

from xet_composer.templates.base import (
    TEMPLATE_SUFFIX,
    ContractIdentity,
    ContractTemplate,
    RenderError,
    TemplateInitError,
    TemplateNotFoundError,
)

logger = logging.getLogger(__name__)


def get_package_templates_path() -> Path:
    """Get path to package-bundled default templates."""
    return Path(__file__).parent / "default"


def discover_template_files(base_path: Path) -> dict[str, Path]:
    """Discover template files within a base path.

    Returns dict mapping template name -> template file path.
    Raises TemplateInitError if the directory cannot be read.
    """
    templates: dict[str, Path] = {}
    try:
        entries = sorted(base_path.iterdir())
    except OSError as e:
        raise TemplateInitError(f"Cannot read template root {base_path}: {e}") from e

    for item in entries:
        if item.is_file() and item.name.endswith(TEMPLATE_SUFFIX):
            templates[item.name[: -len(TEMPLATE_SUFFIX)]] = item

    return templates


class TemplateRenderer:
    """Renders contract templates loaded once from a template root.

    The set of templates is fixed at construction. Every template is
    compiled eagerly so a syntax error fails construction, not a request.
    """

    def __init__(self, template_root: Path) -> None:
        self.template_root = template_root
        self._templates: dict[str, ContractTemplate] = {}

        sources: dict[str, str] = {}
        for name, path in discover_template_files(template_root).items():
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise TemplateInitError(f"Cannot read template {path}: {e}") from e
            self._templates[name] = ContractTemplate(
                name=name, content=content, source=path
            )
            sources[path.name] = content

        self._env = jinja2.Environment(
            loader=jinja2.DictLoader(sources),
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )

        for filename in sources:
            try:
                self._env.get_template(filename)
            except jinja2.TemplateSyntaxError as e:
                raise TemplateInitError(
                    f"Invalid template {filename} (line {e.lineno}): {e.message}"
                ) from e

        logger.debug(
            "Loaded %d template(s) from %s", len(self._templates), template_root
        )

    @property
    def template_names(self) -> list[str]:
        """Sorted names of all loaded templates."""
        return sorted(self._templates)

    def get_template(self, name: str) -> ContractTemplate | None:
        """Get a loaded template by bare name or filename."""
        identity = ContractIdentity.from_template(name)
        return self._templates.get(identity.template_name)

    def render(self, template_name: str, parameters: Mapping[str, Any]) -> str:
        """Render a template with the given parameters.

        Args:
            template_name: Bare template name ("TokenVesting") or filename
                ("TokenVesting.sol.j2").
            parameters: Mapping of template variables.

        Raises:
            TemplateNotFoundError: The name is not among the loaded templates.
            RenderError: Substitution failed (undefined variable, bad expression,
                text that cannot be encoded as UTF-8).
        """
        identity = ContractIdentity.from_template(template_name)
        if identity.template_name not in self._templates:
            raise TemplateNotFoundError(template_name)

        if not isinstance(parameters, Mapping):
            raise RenderError(
                identity.template_name,
                f"parameters must be a mapping, got {type(parameters).__name__}",
            )

        template = self._env.get_template(identity.template_file)
        try:
            source = template.render(dict(parameters))
        except jinja2.TemplateError as e:
            raise RenderError(identity.template_name, str(e)) from e
        except (TypeError, ValueError, ArithmeticError) as e:
            raise RenderError(identity.template_name, f"{type(e).__name__}: {e}") from e

        # Rendered source is handed to the compiler as UTF-8
        try:
            source.encode("utf-8")
        except UnicodeEncodeError as e:
            raise RenderError(
                identity.template_name, f"rendered source is not valid UTF-8: {e.reason}"
            ) from e
        return source
