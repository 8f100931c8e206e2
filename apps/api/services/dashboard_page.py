"""Server-rendered dashboard page."""

from __future__ import annotations

from html import escape
from typing import Any

_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; background: #0f172a;
       color: #e2e8f0; margin: 0; padding: 2rem; }
h1 { font-size: 2rem; margin-bottom: .25rem; }
h2 { font-size: 1.3rem; margin-top: 2rem; }
.stats { display: flex; gap: 1rem; }
.stat { background: #1e293b; border-radius: 8px; padding: 1rem 1.5rem; }
.stat-number { font-size: 2rem; font-weight: 600; }
table { width: 100%; border-collapse: collapse; font-size: .9rem; }
th, td { text-align: left; padding: .5rem; border-bottom: 1px solid #334155; }
a { color: #60a5fa; }
textarea { width: 100%; min-height: 160px; background: #1e293b; color: inherit; border: 1px solid #334155;
           border-radius: 6px; padding: .75rem; font-size: .9rem; }
select, button { margin-top: .75rem; padding: .5rem 1rem; border-radius: 6px; }
.muted { color: #94a3b8; }
"""

_SCRIPT = """
async function saveSettings() {
  const status = document.getElementById('saveStatus');
  status.textContent = 'Saving...';
  const response = await fetch(window.location.href, {
    method: 'POST',
    headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({
      action: 'saveSettings',
      prompt: document.getElementById('promptInput').value,
      model: document.getElementById('modelSelect').value,
    }),
  });
  const result = await response.json();
  status.textContent = result.message;
}
"""


def _link(uri: str | None, label: str) -> str:
    if not uri:
        return ""
    return f'<a href="{escape(uri)}" target="_blank">{escape(label)}</a>'


def _completed_rows(rows: list[dict[str, Any]]) -> str:
    out = []
    for row in rows:
        links = " | ".join(
            part
            for part in (
                _link(row.get("transcript_uri"), "Transcript"),
                _link(row.get("analysis_uri"), "Analysis"),
                _link(row.get("json_uri"), "JSON"),
            )
            if part
        )
        out.append(
            "<tr>"
            f"<td>{escape(row['video_name'])}</td>"
            f"<td>{escape(row.get('created') or '')}</td>"
            f"<td>{escape(row['size'])}</td>"
            f"<td>{links}</td>"
            "</tr>"
        )
    return "\n".join(out)


def _pending_rows(rows: list[dict[str, Any]]) -> str:
    return "\n".join(
        "<tr>"
        f"<td>{escape(row['name'])}</td>"
        f"<td>{escape(row.get('created') or '')}</td>"
        f"<td>{escape(row['size'])}</td>"
        "</tr>"
        for row in rows
    )


def _model_options(settings: dict[str, Any]) -> str:
    current = settings.get("model")
    options = []
    for model in settings.get("models") or []:
        selected = " selected" if model["id"] == current else ""
        options.append(
            f'<option value="{escape(model["id"])}"{selected}>'
            f'{escape(model["name"])} ({escape(model["description"])})</option>'
        )
    return "\n".join(options)


def _table(headers: tuple[str, ...], body: str, empty: str) -> str:
    if not body:
        return f'<p class="muted">{escape(empty)}</p>'
    head = "".join(f"<th>{escape(h)}</th>" for h in headers)
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def render_dashboard(snapshot: dict[str, Any]) -> str:
    settings = snapshot.get("settings") or {}
    stats = snapshot.get("stats") or {}
    completed = _table(
        ("Video", "Created", "Size", "Files"),
        _completed_rows(snapshot.get("completed") or []),
        "No completed transcripts yet.",
    )
    pending = _table(
        ("File", "Created", "Size"),
        _pending_rows(snapshot.get("pending") or []),
        "Nothing pending.",
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Transcription Dashboard</title>
<style>{_STYLE}</style>
</head>
<body>
<h1>Transcription Dashboard</h1>
<div class="stats">
  <div class="stat"><div class="stat-number">{int(stats.get("completed", 0))}</div>Completed</div>
  <div class="stat"><div class="stat-number">{int(stats.get("analyzed", 0))}</div>Analyzed</div>
  <div class="stat"><div class="stat-number">{int(stats.get("pending", 0))}</div>Pending</div>
</div>
<h2>AI Analysis Settings</h2>
<textarea id="promptInput" placeholder="Enter your analysis prompt here...">{escape(settings.get("prompt") or "")}</textarea>
<select id="modelSelect">{_model_options(settings)}</select>
<button onclick="saveSettings()">Save Settings</button>
<span id="saveStatus" class="muted"></span>
<h2>Pending</h2>
{pending}
<h2>Completed</h2>
{completed}
<script>{_SCRIPT}</script>
</body>
</html>
"""
