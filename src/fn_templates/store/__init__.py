"""Central template store client."""
from fn_templates.store.client import StoreTemplate, TemplateStore

__all__ = ["StoreTemplate", "TemplateStore"]
