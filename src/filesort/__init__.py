"""filesort - moustache-style expression templates for organizing files.

Templates mix literal text with ``{{ ... }}`` expressions (variable lookups and
function calls) that are resolved against a context built for each file:

    from filesort.templates import Context, TemplateEngine

    engine = TemplateEngine()
    template = engine.compile("sorted/{{ upper(extension) }}/{{ name }}")
    engine.render(template, Context({"extension": "pdf", "name": "a.pdf"}))
    # 'sorted/PDF/a.pdf'
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
