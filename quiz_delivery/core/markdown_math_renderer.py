"""Markdown + LaTeX rendering of question prompts for the Qt quiz window.

Prompts are stored as markdown with ``$...$`` math. The renderer produces
HTML and leaves the math to MathJax at display time, so the quiz window
shows the same markup instructors see when authoring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from markdown_it import MarkdownIt

from quiz_delivery.core.models import Question

_MATHJAX_SCRIPT = (
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
)


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments or full documents."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = markdown_text.strip() or ""
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_question(self, question: Question, position: int, total: int) -> str:
        """Full HTML document for one question: heading, prompt and optional image."""

        parts = [
            f"<p class=\"question-meta\">Question {position + 1} of {total}"
            f" &middot; {question.points} pt{'s' if question.points != 1 else ''}"
            f"{' &middot; required' if question.required else ''}</p>",
            self.render_fragment(question.prompt),
        ]
        if question.image_url:
            parts.append(
                f"<img class=\"question-image\" src=\"{escape(question.image_url, quote=True)}\" alt=\"\" />"
            )
        return self.wrap_with_mathjax("\n".join(parts), title=f"Question {position + 1}")

    def wrap_with_mathjax(self, body_html: str, title: str = "Quiz") -> str:
        """Wrap a fragment inside a minimal HTML document that loads MathJax."""

        return f"""<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>{escape(title)}</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      body {{ font-family: 'Segoe UI', system-ui, sans-serif; margin: 0; padding: 1rem; background: transparent; }}
      .question-meta {{ color: #666666; font-size: 0.9rem; }}
      .question-html {{ font-size: 1.1rem; line-height: 1.5; }}
      .question-image {{ max-width: 100%; margin-top: 0.75rem; }}
    </style>
    <script>
      window.MathJax = {{ tex: {{ inlineMath: [['$','$']], displayMath: [['$$','$$']] }}, svg: {{ fontCache: 'global' }} }};
    </script>
    <script defer src=\"{_MATHJAX_SCRIPT}\"></script>
  </head>
  <body oncontextmenu=\"return false;\">
    <div class=\"question-html\">{body_html}</div>
  </body>
</html>"""


renderer = MarkdownMathRenderer()
# Shared instance; the quiz window renders from the Qt GUI thread only.
