"""Stack file models: functions and their template sources."""
import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fn_templates.core.errors import StackConfigError

logger = logging.getLogger(__name__)

DEFAULT_STACK_FILE = Path("stack.yml")


class StackFunction(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    language: str = Field(..., alias="lang")
    handler: str
    image: Optional[str] = None


class TemplateSource(BaseModel):
    """A named template and the repository it comes from (empty = store)."""

    model_config = ConfigDict(extra="ignore")

    name: str
    source: str = ""


class StackConfiguration(BaseModel):
    model_config = ConfigDict(extra="ignore")

    templates: List[TemplateSource] = Field(default_factory=list)


class Stack(BaseModel):
    """The parts of a stack file the template commands read."""

    model_config = ConfigDict(extra="ignore")

    functions: Dict[str, StackFunction] = Field(default_factory=dict)
    configuration: StackConfiguration = Field(default_factory=StackConfiguration)

    @property
    def template_sources(self) -> List[TemplateSource]:
        return self.configuration.templates

    def languages(self) -> List[str]:
        """Declared languages in function declaration order."""
        return [function.language for function in self.functions.values()]


def parse_stack(text: str) -> Stack:
    """Parse stack YAML text.

    Raises:
        StackConfigError: If the YAML is malformed or does not fit the model
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise StackConfigError(f"can't read: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise StackConfigError("can't read: stack file must be a mapping")

    try:
        return Stack.model_validate(data)
    except ValidationError as e:
        raise StackConfigError(f"invalid stack file: {e}")


def load_stack(path: Path) -> Stack:
    """Read and parse a stack file."""
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise StackConfigError(f"can't read file {path}, error: {e}")

    stack = parse_stack(text)
    if not stack.template_sources:
        logger.info(f"No template repos configured in {path}, using the store")
    return stack
