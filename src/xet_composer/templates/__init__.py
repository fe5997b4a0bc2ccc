"""Contract template definitions, discovery and rendering."""

from xet_composer.templates.base import (
    TEMPLATE_SUFFIX,
    ContractIdentity,
    ContractTemplate,
    RenderError,
    TemplateError,
    TemplateInitError,
    TemplateNotFoundError,
)
from xet_composer.templates.loader import (
    TemplateRenderer,
    discover_template_files,
    get_package_templates_path,
)

__all__ = [
    "TEMPLATE_SUFFIX",
    "ContractIdentity",
    "ContractTemplate",
    "RenderError",
    "TemplateError",
    "TemplateInitError",
    "TemplateNotFoundError",
    "TemplateRenderer",
    "discover_template_files",
    "get_package_templates_path",
]

# Default template names for reference
DEFAULT_TEMPLATES: tuple[str, ...] = ("TokenVesting",)
