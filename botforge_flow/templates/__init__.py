from botforge_flow.templates.instantiator import instantiate
from botforge_flow.templates.catalog import TEMPLATES, available_templates, get_template

__all__ = ["instantiate", "TEMPLATES", "available_templates", "get_template"]
