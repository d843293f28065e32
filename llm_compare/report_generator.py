"""Report generation for comparison results.

Renders a ComparisonResult as a side-by-side Markdown or HTML report with the
metric table, metric differences, similarity score and both outputs.
"""

from __future__ import annotations

from datetime import UTC, datetime
from html import escape
from pathlib import Path

from llm_compare.comparator import ComparisonResult, ModelReport
from llm_compare.metrics import format_metrics_table


class ReportGenerator:
    """Generates comparison reports in Markdown and HTML formats.

    Args:
        output_dir: Directory to write report files to.
    """

    def __init__(self, output_dir: str | Path = "reports") -> None:
        self.output_dir = Path(output_dir)

    def generate_markdown(self, result: ComparisonResult) -> str:
        """Generate a complete Markdown comparison report.

        Args:
            result: ComparisonResult to render.

        Returns:
            Complete Markdown report as a string.
        """
        sections = [
            self._header(result),
            self._metrics_table(result),
            self._comparison_analysis(result),
            self._output_section(result.model1),
            self._output_section(result.model2),
            self._footer(),
        ]
        return "\n\n".join(sections)

    def generate_html(self, result: ComparisonResult) -> str:
        """Generate an HTML comparison report with the two outputs in columns.

        Args:
            result: ComparisonResult to render.

        Returns:
            Complete HTML report as a string.
        """
        return self._wrap_html(self._html_body(result))

    def save_markdown(self, result: ComparisonResult, filename: str = "comparison.md") -> Path:
        """Save Markdown report to a file.

        Returns:
            Path to the saved file.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.output_dir / filename
        filepath.write_text(self.generate_markdown(result))
        return filepath

    def save_html(self, result: ComparisonResult, filename: str = "comparison.html") -> Path:
        """Save HTML report to a file.

        Returns:
            Path to the saved file.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.output_dir / filename
        filepath.write_text(self.generate_html(result))
        return filepath

    @staticmethod
    def _header(result: ComparisonResult) -> str:
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M UTC")
        return (
            f"# Model Comparison: {result.model1.name} vs {result.model2.name}\n\n"
            f"**Generated:** {timestamp}\n\n"
            f"**Prompt:** {result.prompt}\n\n---"
        )

    @staticmethod
    def _metrics_table(result: ComparisonResult) -> str:
        """Generate the side-by-side metrics table."""
        left = format_metrics_table(result.model1.response, result.model1.metrics)
        right = format_metrics_table(result.model2.response, result.model2.metrics)

        lines = [
            "## Performance Metrics",
            "",
            f"| Metric | {result.model1.name} | {result.model2.name} |",
            "|--------|---|---|",
        ]
        for key in left:
            lines.append(f"| {key} | {left[key]} | {right[key]} |")
        return "\n".join(lines)

    @staticmethod
    def _comparison_analysis(result: ComparisonResult) -> str:
        diff = result.differences
        tokens = "N/A" if diff.tokens is None else str(diff.tokens)
        lines = [
            "## Comparison Analysis",
            "",
            f"**Response Similarity:** {result.similarity:.2%}",
            "",
            f"- **Time Difference:** {diff.time_ms}ms",
            f"- **Token Difference:** {tokens}",
            f"- **Character Difference:** {diff.chars}",
            f"- **Word Difference:** {diff.words}",
            f"- **Sentence Difference:** {diff.sentences}",
        ]
        return "\n".join(lines)

    @staticmethod
    def _output_section(report: ModelReport) -> str:
        return f"## {report.name}\n\n{report.response.output or '[no response]'}"

    @staticmethod
    def _footer() -> str:
        return "---\n\n*Generated by LLM Output Compare*"

    def _html_body(self, result: ComparisonResult) -> str:
        left = format_metrics_table(result.model1.response, result.model1.metrics)
        right = format_metrics_table(result.model2.response, result.model2.metrics)
        rows = "\n".join(
            f"<tr><th>{escape(key)}</th><td>{escape(left[key])}</td>"
            f"<td>{escape(right[key])}</td></tr>"
            for key in left
        )
        diff = result.differences
        tokens = "N/A" if diff.tokens is None else str(diff.tokens)
        columns = "\n".join(self._html_column(report) for report in (result.model1, result.model2))
        name1, name2 = escape(result.model1.name), escape(result.model2.name)
        return f"""<h1>Model Comparison: {name1} vs {name2}</h1>
<p class="prompt"><strong>Prompt:</strong> {escape(result.prompt)}</p>
<p class="similarity">Response Similarity: <strong>{result.similarity:.2%}</strong></p>
<table>
<thead><tr><th>Metric</th><th>{name1}</th><th>{name2}</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
<ul class="differences">
<li>Time Difference: {diff.time_ms}ms</li>
<li>Token Difference: {tokens}</li>
<li>Character Difference: {diff.chars}</li>
<li>Word Difference: {diff.words}</li>
<li>Sentence Difference: {diff.sentences}</li>
</ul>
<div class="outputs">
{columns}
</div>"""

    @staticmethod
    def _html_column(report: ModelReport) -> str:
        output = escape(report.response.output or "[no response]")
        return f"""<section class="output">
<h2>{escape(report.name)}</h2>
<div class="text">{output}</div>
</section>"""

    @staticmethod
    def _wrap_html(body: str) -> str:
        """Wrap a rendered report body in the page template."""
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Model Comparison Report</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            max-width: 1200px;
            margin: 0 auto;
            padding: 2rem;
            line-height: 1.6;
        }}
        table {{ border-collapse: collapse; margin: 1rem 0; }}
        th, td {{ border: 1px solid #d0d7de; padding: 0.4rem 0.8rem; text-align: left; }}
        .outputs {{ display: grid; grid-template-columns: 1fr 1fr; gap: 1.5rem; }}
        .output .text {{
            padding: 1rem;
            border: 1px solid #d0d7de;
            border-radius: 8px;
            white-space: pre-wrap;
        }}
    </style>
</head>
<body>
{body}
<footer><em>Generated by LLM Output Compare</em></footer>
</body>
</html>"""
