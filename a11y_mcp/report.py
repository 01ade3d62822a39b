"""HTML rendering for saved ``audit_webpage`` reports."""
from pathlib import Path
import orjson
from jinja2 import Template

from .metrics import SEVERITY_LEVELS, count_by_severity
from .schema import AuditReport

TEMPLATE = """<!DOCTYPE html>
<html lang=\"en\">
<head>
<meta charset=\"UTF-8\" />
<title>Accessibility Audit: {{ report.url }}</title>
<style>
body { font-family: system-ui, sans-serif; line-height:1.4; }
table { border-collapse: collapse; width: 100%; }
th, td { border:1px solid #ccc; padding:4px 6px; vertical-align: top; }
th { background:#f2f2f2; }
.impact { padding:2px 6px; border-radius:4px; color:#fff; }
.impact-critical { background:#a00; }
.impact-serious { background:#b34700; }
.impact-moderate { background:#6b5900; }
.impact-minor, .impact-none { background:#555; }
code { font-size: 0.85rem; }
header, main, footer { max-width: 1200px; margin: 0 auto; }
header:focus-within a.skip-link { top: 0; }
a.skip-link { position:absolute; left:0; top:-40px; background:#000; color:#fff; padding:8px; }
details { border: 1px solid #ccc; border-radius: 4px; padding: 0.5rem; margin-bottom: 1rem; }
details summary { cursor: pointer; }
</style>
</head>
<body>
<a href=\"#main\" class=\"skip-link\">Skip to main content</a>
<header>
<h1>Accessibility Audit</h1>
<p>Page: <a href=\"{{ report.url }}\">{{ report.url }}</a></p>
<p>Audited: <time datetime=\"{{ report.timestamp }}\">{{ report.timestamp }}</time></p>
</header>
<main id=\"main\">
<section aria-labelledby=\"summary-h2\">
<h2 id=\"summary-h2\">Summary</h2>
<table>
<caption>Rule results</caption>
<thead>
<tr><th scope=\"col\">Violations</th>{% for level in levels %}<th scope=\"col\">{{ level|capitalize }}</th>{% endfor %}<th scope=\"col\">Passed</th><th scope=\"col\">Incomplete</th><th scope=\"col\">Inapplicable</th></tr>
</thead>
<tbody>
<tr>
  <td>{{ report.violations|length }}</td>
  {% for level in levels %}<td>{{ counts[level] }}</td>{% endfor %}
  <td>{{ report.passes }}</td>
  <td>{{ report.incomplete }}</td>
  <td>{{ report.inapplicable }}</td>
</tr>
</tbody>
</table>
</section>
<section aria-labelledby=\"details-h2\">
<h2 id=\"details-h2\">Violations</h2>
{% if not report.violations %}
<p>No violations found.</p>
{% endif %}
{% for v in report.violations %}
<details>
  <summary><h3 style=\"display:inline\">{{ v.id }}</h3> <span class=\"impact impact-{{ v.impact or 'none' }}\">{{ v.impact or 'unknown' }}</span> ({{ v.nodes|length }}x)</summary>
  <p>{{ v.description }}{% if v.helpUrl %} <a href=\"{{ v.helpUrl }}\">Learn more about {{ v.id }}</a>{% endif %}</p>
  <ul>
    {% for n in v.nodes %}
    <li>
      <code>{{ n.target|join(' ') }}</code>
      {% if n.failureSummary %}<pre style=\"white-space:pre-wrap;\">{{ n.failureSummary }}</pre>{% endif %}
      {% if n.html %}<pre style=\"white-space:pre-wrap; background:#f9f9f9; padding:.5rem; border:1px solid #ddd;\"><code>{{ n.html }}</code></pre>{% endif %}
    </li>
    {% endfor %}
  </ul>
</details>
{% endfor %}
</section>
</main>
<footer>
<p>Rules evaluated by <a href=\"https://github.com/dequelabs/axe-core\">axe-core</a>. Automated checks cover only part of WCAG; a clean report does not mean the page is accessible.</p>
</footer>
</body>
</html>
"""


def render_report(report_json_path: Path, out_html: Path):
    """Render a JSON report produced by ``audit_webpage`` as an HTML page."""
    report = AuditReport.model_validate(orjson.loads(Path(report_json_path).read_bytes()))
    html = Template(TEMPLATE, autoescape=True).render(
        report=report,
        levels=SEVERITY_LEVELS,
        counts=count_by_severity(report.violations),
    )
    Path(out_html).write_text(html, encoding="utf-8")
