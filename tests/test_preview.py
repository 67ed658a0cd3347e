"""Tests for core.preview — scaffold rendering and the Playwright inspector (mocked)."""

import json
from unittest.mock import MagicMock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError

from core.errors import PreviewUnavailable
from core.preview import (
    PlaywrightPreview,
    build_sandbox_files,
    find_unresolved_imports,
    import_map,
    render_host_page,
)


APP = """import React, { useState } from 'react';
import { createRoot } from "react-dom/client";
import './styles.css';

export default function App() {
  const [count, setCount] = useState(0);
  return <button onClick={() => setCount(count + 1)}>Count: {count}</button>;
}
"""


# ---------------------------------------------------------------------------
# imports
# ---------------------------------------------------------------------------

def test_react_imports_resolve():
    assert find_unresolved_imports(APP) == []


def test_external_imports_are_reported_in_order():
    code = (
        "import axios from 'axios';\n"
        "import { debounce } from \"lodash\";\n"
        "import 'axios';\n"
        "export { x } from 'zustand';\n"
    )
    assert find_unresolved_imports(code) == ["axios", "lodash", "zustand"]


def test_relative_and_url_imports_are_ignored():
    code = "import a from './a';\nimport b from '/b';\nimport c from 'https://esm.sh/c';\n"
    assert find_unresolved_imports(code) == []


def test_require_calls_are_seen():
    assert find_unresolved_imports("const dayjs = require('dayjs');") == ["dayjs"]


def test_import_map_covers_react_modules():
    imports = import_map()["imports"]
    assert set(imports) == {"react", "react/jsx-runtime", "react-dom", "react-dom/client"}
    assert all(url.startswith("https://esm.sh/") for url in imports.values())


# ---------------------------------------------------------------------------
# scaffold files
# ---------------------------------------------------------------------------

def test_sandbox_files_place_artifact_as_app():
    files = build_sandbox_files(APP)
    assert files["/App.tsx"] == APP
    assert "createRoot" in files["/index.tsx"]
    assert "./App" in files["/index.tsx"]


def test_sandbox_html_loads_tailwind():
    html = build_sandbox_files(APP)["/public/index.html"]
    assert "https://cdn.tailwindcss.com" in html
    assert 'id="root"' in html
    assert "$tailwind_cdn" not in html


def test_host_page_embeds_source_safely():
    code = 'export default () => "</script><script>alert(1)</script>";'
    html = render_host_page(code)
    assert "</script><script>alert(1)" not in html
    assert json.dumps(code).replace("</", "<\\/") in html


def test_host_page_lists_missing_modules():
    html = render_host_page("import axios from 'axios';")
    assert 'const missing = ["axios"];' in html


def test_host_page_has_no_unrendered_placeholders():
    html = render_host_page(APP)
    for name in ("$source", "$missing_modules", "$import_map", "$babel_cdn", "$tailwind_cdn"):
        assert name not in html


# ---------------------------------------------------------------------------
# PlaywrightPreview
# ---------------------------------------------------------------------------

def _fake_playwright(body_text="Count: 0", error_texts=None, preview_attr=None, page_errors=()):
    page = MagicMock()
    handlers = {}

    def on(event, handler):
        handlers[event] = handler

    def set_content(*args, **kwargs):
        for err in page_errors:
            handlers["pageerror"](err)

    page.on.side_effect = on
    page.set_content.side_effect = set_content
    page.get_attribute.return_value = preview_attr
    page.inner_text.return_value = body_text
    page.locator.return_value.all_inner_texts.return_value = error_texts or []

    browser = MagicMock()
    browser.new_page.return_value = page
    pw = MagicMock()
    pw.chromium.launch.return_value = browser

    manager = MagicMock()
    manager.__enter__.return_value = pw
    manager.__exit__.return_value = False
    return manager, browser, page


def test_snapshot_collects_text_and_flagged_elements():
    manager, browser, page = _fake_playwright(
        body_text="Cannot find module 'axios'", error_texts=["Cannot find module 'axios'"],
    )
    with patch("core.preview.sync_playwright", return_value=manager):
        snap = PlaywrightPreview(settle_ms=0).snapshot("import axios from 'axios';")

    assert snap.body_text == "Cannot find module 'axios'"
    assert snap.error_texts == ["Cannot find module 'axios'"]
    assert "sp-error" in page.locator.call_args[0][0]
    browser.close.assert_called_once()


def test_snapshot_records_page_errors():
    manager, _, _ = _fake_playwright(page_errors=["ReferenceError: Counter is not defined"])
    with patch("core.preview.sync_playwright", return_value=manager):
        snap = PlaywrightPreview(settle_ms=0).snapshot(APP)
    assert snap.diagnostics == ["PageError: ReferenceError: Counter is not defined"]


def test_snapshot_unavailable_runtime():
    manager, browser, _ = _fake_playwright(preview_attr="unavailable")
    with patch("core.preview.sync_playwright", return_value=manager):
        with pytest.raises(PreviewUnavailable):
            PlaywrightPreview(settle_ms=0).snapshot(APP)
    browser.close.assert_called_once()


def test_snapshot_browser_failure_is_unavailable():
    manager, _, page = _fake_playwright()
    page.set_content.side_effect = PlaywrightError("Timeout 30000ms exceeded")
    with patch("core.preview.sync_playwright", return_value=manager):
        with pytest.raises(PreviewUnavailable):
            PlaywrightPreview(settle_ms=0).snapshot(APP)


def test_snapshot_requires_code():
    with pytest.raises(PreviewUnavailable):
        PlaywrightPreview().snapshot("")
