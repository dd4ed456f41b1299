"""Stack-driven template pulls."""
from fn_templates.stack.config import (
    Stack,
    StackFunction,
    TemplateSource,
    load_stack,
    parse_stack,
)
from fn_templates.stack.missing import missing_templates
from fn_templates.stack.pull import PullOutcome, TemplateStoreClient, pull_stack_templates

__all__ = [
    "PullOutcome",
    "Stack",
    "StackFunction",
    "TemplateSource",
    "TemplateStoreClient",
    "load_stack",
    "missing_templates",
    "parse_stack",
    "pull_stack_templates",
]
