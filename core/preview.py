"""Preview sandbox adapter — scaffold files and a Playwright-rendered host page.

The finalized artifact is rendered as ``/App.tsx`` next to two fixed
scaffold files: an entry-point bootstrap and a host HTML page that pulls
Tailwind from its CDN. For inspection, a self-contained host page compiles
the component in headless Chromium and reports failures as elements
flagged ``.sp-error`` / ``data-error="true"``.
"""

import json
import logging
import os
import re
from string import Template

from playwright.sync_api import Error as PlaywrightError, sync_playwright

from config.defaults import DEFAULTS
from config.rules import ERROR_SELECTORS, PREVIEW_MODULES
from core.errors import PreviewUnavailable
from core.state import PreviewSnapshot

log = logging.getLogger("preview")

_IMPORT_RE = re.compile(
    r"""(?:\bimport\s+(?:[\w*{}\s,$]+\s+from\s+)?|\bexport\s+[\w*{}\s,$]+\s+from\s+|\brequire\s*\(\s*)['"]([^'"]+)['"]"""
)


def get_templates_dir():
    """Return the absolute path to the preview templates directory."""
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "preview")


def render_template(name, variables):
    """Render a preview template. Unknown placeholders are left as-is."""
    path = os.path.join(get_templates_dir(), name)
    with open(path, "r", encoding="utf-8") as f:
        return Template(f.read()).safe_substitute(variables)


def import_map():
    """Import map resolving the React modules the preview provides."""
    base = DEFAULTS["esm_cdn"].rstrip("/")
    version = DEFAULTS["react_version"]
    deps = f"?deps=react@{version}"
    return {
        "imports": {
            "react": f"{base}/react@{version}",
            "react/jsx-runtime": f"{base}/react@{version}/jsx-runtime",
            "react-dom": f"{base}/react-dom@{version}{deps}",
            "react-dom/client": f"{base}/react-dom@{version}/client{deps}",
        }
    }


def find_unresolved_imports(code):
    """Return bare module specifiers in code that the preview cannot resolve."""
    unresolved = []
    for match in _IMPORT_RE.finditer(code):
        specifier = match.group(1)
        if specifier.startswith((".", "/", "http:", "https:")):
            continue
        if specifier in PREVIEW_MODULES or specifier in unresolved:
            continue
        unresolved.append(specifier)
    return unresolved


def _script_literal(value):
    """JSON-encode value for embedding inside an inline <script>."""
    return json.dumps(value).replace("</", "<\\/")


def build_sandbox_files(code):
    """Return the file set handed to the sandbox: component plus scaffold."""
    return {
        "/App.tsx": code,
        "/index.tsx": render_template("index.tsx", {}),
        "/public/index.html": render_template("index.html", {"tailwind_cdn": DEFAULTS["tailwind_cdn"]}),
    }


def render_host_page(code):
    """Return a standalone HTML page that compiles and mounts code in the browser."""
    return render_template("host.html", {
        "tailwind_cdn": DEFAULTS["tailwind_cdn"],
        "babel_cdn": DEFAULTS["babel_cdn"],
        "import_map": _script_literal(import_map()),
        "source": _script_literal(code),
        "missing_modules": _script_literal(find_unresolved_imports(code)),
    })


class PlaywrightPreview:
    """Renders the artifact in headless Chromium and reads its error surface.

    Each snapshot launches its own browser so it can be taken from any
    thread (the sync Playwright API is bound to the thread that started it).
    """

    def __init__(self, timeout_ms=None, settle_ms=None, headless=True):
        self.timeout_ms = timeout_ms or DEFAULTS["preview_timeout_ms"]
        self.settle_ms = settle_ms if settle_ms is not None else DEFAULTS["preview_settle_ms"]
        self.headless = headless

    def snapshot(self, code) -> PreviewSnapshot:
        if not code:
            raise PreviewUnavailable("Nothing to render")

        diagnostics = []
        try:
            with sync_playwright() as pw:
                browser = pw.chromium.launch(headless=self.headless)
                try:
                    page = browser.new_page(viewport={"width": 1280, "height": 720})
                    page.on("pageerror", lambda e: diagnostics.append(f"PageError: {e}"))
                    page.on("console", lambda m: diagnostics.append(m.text)
                            if m.type == "error" else None)
                    page.set_content(render_host_page(code), wait_until="load",
                                     timeout=self.timeout_ms)
                    page.wait_for_timeout(self.settle_ms)
                    if page.get_attribute("body", "data-preview") == "unavailable":
                        raise PreviewUnavailable("Preview runtime could not be loaded")
                    body_text = page.inner_text("body")
                    error_texts = page.locator(ERROR_SELECTORS).all_inner_texts()
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise PreviewUnavailable(f"Preview inspection failed: {e}") from e

        log.debug("Preview snapshot: %d chars, %d flagged, %d diagnostics",
                  len(body_text), len(error_texts), len(diagnostics))
        return PreviewSnapshot(body_text=body_text, error_texts=error_texts, diagnostics=diagnostics)

