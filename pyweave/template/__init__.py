from pyweave.template.engine import TemplateEngine

__all__ = ["TemplateEngine"]
