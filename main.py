#!/usr/bin/env python3
"""Artifacts - describe an app, get a live React component.

Usage:
    python main.py serve                                   # run the generation endpoint
    python main.py generate --prompt "build a counter"     # one-shot, streams the code
    python main.py generate --prompt "..." --watch         # one-shot with preview auto-fix
    python main.py session                                 # interactive generate/fix loop
    python main.py preview --input App.tsx                 # render a component, report errors
"""

import argparse
import logging
import os
import sys
import time

from config.defaults import DEFAULTS
from core.errors import PreviewUnavailable
from core.client import GenerationClient
from core.loop import ArtifactLoop
from core.preview import PlaywrightPreview, build_sandbox_files, render_host_page
from core.watcher import detect_error


class _CodePrinter:
    """Prints the growing artifact as it streams in."""

    def __init__(self, out=None):
        self.out = out or sys.stdout
        self.shown = ""

    def __call__(self, code):
        if code.startswith(self.shown):
            self.out.write(code[len(self.shown):])
        else:
            # A new generation started, or cleaned code replaced the streamed text.
            self.out.write("\n---\n" + code)
        self.out.flush()
        self.shown = code

    def reset(self):
        if self.shown:
            self.out.write("\n")
        self.shown = ""


def _notify(text):
    print(f"\n[!] {text}")


def _blocking_scheduler(delay, fn):
    time.sleep(delay)
    fn()


def _endpoint(args):
    return args.endpoint or os.environ.get("ARTIFACTS_ENDPOINT") or DEFAULTS["endpoint"]


def _format_status(status):
    lines = [f"Auto-fix: {status['attempts']}/{status['max_attempts']}  ({status['phase']})"]
    if status["last_error"]:
        lines.append(f"Last error: {status['last_error']}")
    return "\n".join(lines)


def cmd_serve(args):
    from server import app
    port = args.port or int(os.environ.get("PORT", 5001))
    print(f"Artifacts endpoint running at http://localhost:{port}/api/generateCode")
    app.run(debug=False, port=port, threaded=True)


def cmd_generate(args):
    """One-shot generation; with --watch, auto-fix runs to completion before exiting."""
    printer = _CodePrinter()
    loop = ArtifactLoop(
        client=GenerationClient(endpoint=_endpoint(args)),
        inspector=PlaywrightPreview() if args.watch else None,
        on_code=printer,
        on_notify=_notify,
        scheduler=_blocking_scheduler,
    )
    ok = loop.generate(args.prompt)
    printer.reset()
    status = loop.status()
    if args.watch:
        print(_format_status(status))
        for idx, instruction in enumerate(status["history"], 1):
            print(f"  {idx}. {instruction}")
    if not ok:
        sys.exit(1)


def _print_history(history):
    if not history:
        print("No modifications yet.")
        return
    print("Modification history:")
    for idx, instruction in enumerate(history, 1):
        print(f"  {idx}. {instruction}")


def cmd_session(args):
    """Interactive session: first line is the prompt, later lines are fixes."""
    printer = _CodePrinter()
    loop = ArtifactLoop(
        client=GenerationClient(endpoint=_endpoint(args)),
        inspector=None if args.no_preview else PlaywrightPreview(),
        on_code=printer,
        on_notify=_notify,
    )
    loop.start()
    print("Describe your app. Commands: :status :history :code :restart :quit")
    try:
        while True:
            has_code = bool(loop.status()["code"])
            try:
                line = input("fix> " if has_code else "prompt> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break

            if not line:
                continue
            if line == ":quit":
                break
            if line == ":status":
                print(_format_status(loop.status()))
            elif line == ":history":
                _print_history(loop.status()["history"])
            elif line == ":code":
                print(loop.status()["code"] or "(no code yet)")
            elif line == ":restart":
                if loop.restart():
                    print("Started over.")
                else:
                    print("A generation is still running; try again when it finishes.")
            else:
                action = loop.fix if has_code else loop.generate
                if not action(line):
                    print("Busy: a generation is already running.")
                printer.reset()
                print(_format_status(loop.status()))
    finally:
        loop.stop()


def cmd_preview(args):
    """Render a component file in the preview and report what the watcher would see."""
    with open(args.input, encoding="utf-8") as f:
        code = f.read()

    if args.html:
        print(render_host_page(code))
        return
    if args.files:
        for path, content in build_sandbox_files(code).items():
            print(f"===== {path}\n{content}")
        return

    try:
        snapshot = PlaywrightPreview().snapshot(code)
    except PreviewUnavailable as e:
        print(f"Preview unavailable: {e}")
        sys.exit(2)
    message = detect_error(snapshot)
    if message:
        print(f"Error detected: {message}")
        sys.exit(1)
    print("No error detected.")


def main():
    parser = argparse.ArgumentParser(
        prog="artifacts",
        description="Generate previewable React components from a description",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the generation endpoint")
    serve_parser.add_argument("--port", type=int, help="Port (default: $PORT or 5001)")

    gen_parser = subparsers.add_parser("generate", help="Generate one component")
    gen_parser.add_argument("--prompt", required=True, help="Natural language description")
    gen_parser.add_argument("--endpoint", help="Generation endpoint URL")
    gen_parser.add_argument("--watch", action="store_true",
                            help="Render in the preview and auto-fix errors (up to "
                                 f"{DEFAULTS['max_auto_fix_attempts']} attempts)")

    session_parser = subparsers.add_parser("session", help="Interactive generate/fix session")
    session_parser.add_argument("--endpoint", help="Generation endpoint URL")
    session_parser.add_argument("--no-preview", action="store_true",
                                help="Do not render or auto-fix")

    preview_parser = subparsers.add_parser("preview", help="Check a component in the preview")
    preview_parser.add_argument("--input", required=True, help="Component source file")
    preview_parser.add_argument("--html", action="store_true", help="Print the host page only")
    preview_parser.add_argument("--files", action="store_true", help="Print the sandbox files only")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "generate":
        cmd_generate(args)
    elif args.command == "session":
        cmd_session(args)
    elif args.command == "preview":
        cmd_preview(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
