"""Contract template and identity definitions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

# Fixed naming convention binding a template file to its logical contract name
TEMPLATE_SUFFIX = ".sol.j2"


class TemplateError(Exception):
    """Base exception for template loading and rendering."""

    kind = "TemplateError"


class TemplateInitError(TemplateError):
    """Raised when the template root cannot be scanned or a template is invalid."""

    kind = "TemplateInitError"


class TemplateNotFoundError(TemplateError):
    """Raised when a template name is not among the loaded templates."""

    kind = "TemplateNotFound"

    def __init__(self, template_name: str) -> None:
        self.template_name = template_name
        super().__init__(f"Template not found: {template_name}")


class RenderError(TemplateError):
    """Raised when parameter substitution cannot complete."""

    kind = "RenderError"

    def __init__(self, template_name: str, detail: str) -> None:
        self.template_name = template_name
        self.detail = detail
        super().__init__(f"Failed to render template '{template_name}': {detail}")


@dataclass(frozen=True)
class ContractIdentity:
    """Binding between a template, its logical contract name and compiler outputs.

    Computed once per request and threaded through rendering, compilation
    and storage.
    """

    template_name: str  # e.g. "TokenVesting"

    @classmethod
    def from_template(cls, identifier: str) -> ContractIdentity:
        """Build an identity from a bare template name or a template filename."""
        name = Path(identifier).name
        if name.endswith(TEMPLATE_SUFFIX):
            name = name[: -len(TEMPLATE_SUFFIX)]
        if not name:
            raise TemplateNotFoundError(identifier)
        return cls(template_name=name)

    @property
    def template_file(self) -> str:
        return f"{self.template_name}{TEMPLATE_SUFFIX}"

    @property
    def contract_name(self) -> str:
        """Logical contract name used to locate compiler output files."""
        return self.template_name

    @property
    def abi_filename(self) -> str:
        return f"{self.contract_name}.abi"

    @property
    def bin_filename(self) -> str:
        return f"{self.contract_name}.bin"


@dataclass(frozen=True)
class ContractTemplate:
    """A loaded contract template."""

    name: str  # e.g. "TokenVesting"
    content: str  # Raw template text
    source: Path | None = None  # Path where template was loaded from
