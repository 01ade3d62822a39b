import pytest

from a11y_mcp.schema import AxeResults


def make_violation(vid, impact, n_nodes=1, tags=("wcag2aa",)):
    return {
        "id": vid,
        "impact": impact,
        "description": f"{vid} description",
        "help": f"{vid} help",
        "helpUrl": f"https://dequeuniversity.com/rules/axe/4.10/{vid}",
        "tags": list(tags),
        "nodes": [
            {
                "impact": impact,
                "target": [f"#{vid}-{i}"],
                "failureSummary": f"Fix {vid} on node {i}",
                "html": f"<div id=\"{vid}-{i}\"></div>",
                "any": [],
                "all": [],
                "none": [],
            }
            for i in range(n_nodes)
        ],
    }


@pytest.fixture
def raw_axe():
    """A trimmed axe.run() result as returned by page.evaluate."""
    return {
        "testEngine": {"name": "axe-core", "version": "4.10.2"},
        "url": "https://example.com/",
        "timestamp": "2024-05-01T12:00:00.000Z",
        "violations": [
            make_violation("color-contrast", "serious", n_nodes=3),
            make_violation("image-alt", "critical", n_nodes=2),
            make_violation("region", "moderate", tags=("best-practice",)),
            make_violation("label", "critical"),
        ],
        "passes": [{"id": "document-title"}, {"id": "html-has-lang"}],
        "incomplete": [{"id": "aria-valid-attr-value"}],
        "inapplicable": [{"id": "audio-caption"}, {"id": "video-caption"}, {"id": "blink"}],
    }


@pytest.fixture
def axe_results(raw_axe):
    return AxeResults.model_validate(raw_axe)
