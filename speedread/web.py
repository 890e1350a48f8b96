"""
web.py

Local web page (Flask) for RSVP speed reading.

Features:
- Paste text or upload a PDF/EPUB
- One word at a time with the ORP (focus letter) highlighted
- Start / Pause / Resume / Reset
- WPM slider (100-1000), remembered between runs
- Longer pause on words ending in . ! ? ,
- Progress bar, word counter, estimated reading time

Pacing runs server-side in a ReaderSession; the page polls /api/reader and
draws whatever state it gets back. The app holds one ReaderSession, so every
open tab drives the same reader; this is a local single-user tool. Run
another process (or call create_app again) for an independent session.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from flask import Flask, jsonify, render_template_string, request
from werkzeug.exceptions import HTTPException

from .config import MAX_WPM, MIN_WPM, WPM_STEP, Config, clamp_wpm, load_config
from .errors import ExtractionError, InvalidRateError, SpeedReadError
from .extract import allowed_file, extract_text_from_file
from .pacer import ThreadingScheduler
from .preferences import JsonFilePreferences
from .session import ReaderSession

logger = logging.getLogger(__name__)


HTML_PAGE = r"""
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Speed Reader (RSVP + ORP)</title>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <style>
    :root {
      --bg: #0f1115;
      --panel: #181c24;
      --panel2: #202633;
      --text: #e8edf5;
      --muted: #9fb0c8;
      --accent: #66b3ff;
      --danger: #ff5c5c;
      --line: #2e3645;
      --orp-center: #ff6f6f;
      --mono-font: "Roboto Mono", "SF Mono", Menlo, Consolas, "Liberation Mono", monospace;
      --sans-font: Inter, system-ui, -apple-system, "Segoe UI", Roboto, sans-serif;
    }

    * { box-sizing: border-box; }
    body {
      margin: 0;
      background: var(--bg);
      color: var(--text);
      font-family: var(--sans-font);
    }

    .app { max-width: 900px; margin: 0 auto; padding: 16px; }

    .topbar {
      display: flex;
      gap: 10px;
      align-items: center;
      padding: 10px 12px;
      background: var(--panel);
      border: 1px solid var(--line);
      border-radius: 10px;
      flex-wrap: wrap;
    }

    .btn, button {
      background: var(--panel2);
      color: var(--text);
      border: 1px solid var(--line);
      border-radius: 8px;
      padding: 7px 12px;
      cursor: pointer;
    }
    .btn:hover, button:hover { border-color: var(--accent); }
    button:disabled { opacity: 0.5; cursor: default; }

    textarea {
      width: 100%;
      min-height: 240px;
      margin-top: 12px;
      background: var(--panel);
      color: var(--text);
      border: 1px solid var(--line);
      border-radius: 10px;
      padding: 12px;
      font-size: 16px;
    }

    .stage {
      margin-top: 12px;
      padding: 48px 12px;
      background: var(--panel);
      border: 1px solid var(--line);
      border-radius: 10px;
      text-align: center;
    }
    .rsvp-line {
      font-family: var(--mono-font);
      font-size: 56px;
      white-space: pre;
    }
    .orp-center { color: var(--orp-center); }
    .meta { color: var(--muted); margin-top: 12px; font-size: 14px; }

    .progress {
      height: 6px;
      margin-top: 16px;
      background: var(--panel2);
      border-radius: 3px;
      overflow: hidden;
    }
    .progress-bar { height: 100%; width: 0; background: var(--accent); }

    #status { color: var(--muted); margin-top: 10px; min-height: 1.2em; }
    #status.error { color: var(--danger); }
    .hidden { display: none; }
  </style>
</head>
<body>
<div class="app">
  <div class="topbar">
    <input id="fileInput" type="file" accept=".pdf,.epub" />
    <button id="loadBtn">Load file</button>
    <label>WPM <input id="wpmInput" type="range" min="{{ min_wpm }}" max="{{ max_wpm }}" step="{{ wpm_step }}" /></label>
    <span id="wpmLabel"></span>
  </div>

  <div id="inputPane">
    <textarea id="textInput" placeholder="Paste the text you want to read..."></textarea>
    <div class="topbar" style="margin-top: 10px">
      <button id="readBtn" disabled>Start reading</button>
      <span id="inputStats" class="meta"></span>
    </div>
  </div>

  <div id="readerPane" class="hidden">
    <div class="stage">
      <div id="rsvpLine" class="rsvp-line"></div>
      <div id="rsvpMeta" class="meta"></div>
      <div class="progress"><div id="progressBar" class="progress-bar"></div></div>
    </div>
    <div class="topbar" style="margin-top: 10px">
      <button id="playBtn">Start</button>
      <button id="resetBtn">Reset</button>
      <button id="newTextBtn">New text</button>
    </div>
  </div>

  <div id="status"></div>
</div>

<script>
(() => {
  const els = {
    fileInput: document.getElementById("fileInput"),
    loadBtn: document.getElementById("loadBtn"),
    wpmInput: document.getElementById("wpmInput"),
    wpmLabel: document.getElementById("wpmLabel"),
    inputPane: document.getElementById("inputPane"),
    textInput: document.getElementById("textInput"),
    readBtn: document.getElementById("readBtn"),
    inputStats: document.getElementById("inputStats"),
    readerPane: document.getElementById("readerPane"),
    rsvpLine: document.getElementById("rsvpLine"),
    rsvpMeta: document.getElementById("rsvpMeta"),
    progressBar: document.getElementById("progressBar"),
    playBtn: document.getElementById("playBtn"),
    resetBtn: document.getElementById("resetBtn"),
    newTextBtn: document.getElementById("newTextBtn"),
    status: document.getElementById("status"),
  };

  function setStatus(msg, isError = false) {
    els.status.textContent = msg;
    els.status.className = isError ? "error" : "";
  }

  function escapeHtml(s) {
    return (s ?? "")
      .replaceAll("&", "&amp;")
      .replaceAll("<", "&lt;")
      .replaceAll(">", "&gt;")
      .replaceAll('"', "&quot;");
  }

  function buildOrpHtml(word) {
    const idx = word.focus_index;
    const left = word.text.slice(0, idx);
    const center = word.text.slice(idx, idx + 1);
    const right = word.text.slice(idx + 1);
    // Pad the shorter side so the focus letter stays at the same column.
    const pad = " ".repeat(Math.max(0, right.length - left.length));
    const padRight = " ".repeat(Math.max(0, left.length - right.length));
    return `${pad}${escapeHtml(left)}<span class="orp-center">${escapeHtml(center)}</span>${escapeHtml(right)}${padRight}`;
  }

  function render(data) {
    const st = data.state;
    els.wpmLabel.textContent = `${st.rate} WPM`;
    if (document.activeElement !== els.wpmInput) els.wpmInput.value = String(st.rate);

    if (!st.total) {
      els.inputPane.classList.remove("hidden");
      els.readerPane.classList.add("hidden");
      return;
    }
    els.inputPane.classList.add("hidden");
    els.readerPane.classList.remove("hidden");

    els.rsvpLine.innerHTML = buildOrpHtml(st.current_word);
    els.rsvpMeta.textContent = `Word ${st.position + 1} of ${st.total} · ~${data.stats.estimated_minutes} min at ${st.rate} WPM`;
    els.progressBar.style.width = `${st.progress_percent}%`;
    els.playBtn.textContent = st.action_label;
    if (st.mode === "finished") setStatus("Reached end of text");
  }

  async function call(path, options = {}) {
    const res = await fetch(path, options);
    const data = await res.json();
    if (!res.ok || !data.ok) throw new Error(data.error || "Request failed");
    render(data);
    return data;
  }

  function post(path, body) {
    return call(path, {
      method: "POST",
      headers: { "Content-Type": "application/json" },
      body: JSON.stringify(body || {}),
    }).catch(err => setStatus(err.message || String(err), true));
  }

  function updateInputStats() {
    const text = els.textInput.value.trim();
    const count = text ? text.split(/\s+/).length : 0;
    const wpm = parseInt(els.wpmInput.value, 10) || 300;
    els.readBtn.disabled = count === 0;
    els.inputStats.textContent = count ? `${count} words · ~${Math.ceil(count / wpm)} min` : "";
  }

  async function loadFile() {
    const file = els.fileInput.files && els.fileInput.files[0];
    if (!file) return setStatus("Choose a PDF or EPUB first.", true);
    setStatus("Uploading and extracting text...");
    const form = new FormData();
    form.append("file", file);
    try {
      const data = await call("/api/reader/extract", { method: "POST", body: form });
      setStatus(`Loaded ${data.filename} (${data.stats.word_count.toLocaleString()} words)`);
    } catch (err) {
      setStatus(`Load failed: ${err.message || err}`, true);
    }
  }

  els.textInput.addEventListener("input", updateInputStats);
  els.readBtn.addEventListener("click", () => {
    setStatus("");
    post("/api/reader/text", { text: els.textInput.value, autostart: true });
  });
  els.loadBtn.addEventListener("click", loadFile);
  els.playBtn.addEventListener("click", () => { setStatus(""); post("/api/reader/toggle"); });
  els.resetBtn.addEventListener("click", () => { setStatus(""); post("/api/reader/reset"); });
  els.newTextBtn.addEventListener("click", () => { setStatus(""); post("/api/reader/clear"); });
  els.wpmInput.addEventListener("change", () => {
    post("/api/reader/rate", { wpm: parseInt(els.wpmInput.value, 10) });
    updateInputStats();
  });

  setInterval(() => { call("/api/reader").catch(() => {}); }, 50);
  call("/api/reader").then(updateInputStats).catch(err => setStatus(err.message, true));
})();
</script>
</body>
</html>
"""


def _state_payload(session: ReaderSession, **extra: Any) -> dict:
    payload = {
        "ok": True,
        "state": session.snapshot().to_dict(),
        "stats": session.stats(),
    }
    payload.update(extra)
    return payload


def create_app(config: Optional[Config] = None, session: Optional[ReaderSession] = None) -> Flask:
    config = config or load_config()
    if session is None:
        session = ReaderSession(JsonFilePreferences(config.prefs_path), ThreadingScheduler())

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_mb * 1024 * 1024
    app.extensions["speedread_session"] = session

    @app.errorhandler(SpeedReadError)
    def handle_reader_error(e: SpeedReadError):
        return jsonify({"ok": False, "error": str(e)}), 400

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"ok": False, "error": e.description}), e.code
        logger.exception("Unhandled error on %s", request.path)
        return jsonify({"ok": False, "error": str(e)}), 500

    @app.route("/", methods=["GET"])
    def index():
        return render_template_string(HTML_PAGE, min_wpm=MIN_WPM, max_wpm=MAX_WPM, wpm_step=WPM_STEP)

    @app.route("/api/reader", methods=["GET"])
    def api_state():
        return jsonify(_state_payload(session))

    @app.route("/api/reader/text", methods=["POST"])
    def api_text():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"ok": False, "error": "Expected a JSON object"}), 400
        text = payload.get("text")
        if not isinstance(text, str):
            return jsonify({"ok": False, "error": "Missing text"}), 400
        autostart = payload.get("autostart", True)
        if not isinstance(autostart, bool):
            return jsonify({"ok": False, "error": "autostart must be true or false"}), 400
        session.submit(text, autostart=autostart)
        return jsonify(_state_payload(session))

    @app.route("/api/reader/extract", methods=["POST"])
    def api_extract():
        if "file" not in request.files:
            return jsonify({"ok": False, "error": "No file uploaded"}), 400

        f = request.files["file"]
        if not f or not f.filename:
            return jsonify({"ok": False, "error": "Missing file"}), 400

        filename = f.filename
        if not allowed_file(filename):
            return jsonify({"ok": False, "error": "Unsupported file type (use .pdf or .epub)"}), 400

        fd, temp_path = tempfile.mkstemp(suffix=Path(filename).suffix.lower())
        try:
            with os.fdopen(fd, "wb") as tmp:
                f.save(tmp)
            text = extract_text_from_file(temp_path)
        finally:
            os.unlink(temp_path)

        if not text.strip():
            raise ExtractionError("No extractable text found. (Scanned PDF likely needs OCR.)")

        session.submit(text, autostart=request.form.get("autostart", "1") != "0")
        logger.info("Extracted %s", filename)
        return jsonify(_state_payload(session, filename=filename))

    @app.route("/api/reader/start", methods=["POST"])
    def api_start():
        session.start()
        return jsonify(_state_payload(session))

    @app.route("/api/reader/pause", methods=["POST"])
    def api_pause():
        session.pause()
        return jsonify(_state_payload(session))

    @app.route("/api/reader/toggle", methods=["POST"])
    def api_toggle():
        session.toggle()
        return jsonify(_state_payload(session))

    @app.route("/api/reader/reset", methods=["POST"])
    def api_reset():
        session.reset()
        return jsonify(_state_payload(session))

    @app.route("/api/reader/clear", methods=["POST"])
    def api_clear():
        session.clear()
        return jsonify(_state_payload(session))

    @app.route("/api/reader/rate", methods=["POST"])
    def api_rate():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"ok": False, "error": "Expected a JSON object"}), 400
        raw = payload.get("wpm")
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise InvalidRateError(raw)
        session.set_rate(clamp_wpm(raw))
        return jsonify(_state_payload(session))

    return app


def main() -> None:
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(config)
    session = app.extensions["speedread_session"]
    print(f"Starting local speed reader on http://{config.host}:{config.port}")
    try:
        app.run(host=config.host, port=config.port, debug=False)
    finally:
        session.close()


if __name__ == "__main__":
    main()
