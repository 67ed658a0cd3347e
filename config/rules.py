"""Text patterns for completion cleanup and preview error detection."""

import re

FENCE_MARKER = "```"

# Language tags the model tends to open its fences with. The plain fence is
# matched last so tagged fences are not left with a dangling tag.
FENCE_TAGS = ["typescript", "tsx", "jsx", "javascript", "ts", "js"]

FENCE_PATTERNS = [
    re.compile(r"```" + tag + r"\b\n?", re.IGNORECASE) for tag in FENCE_TAGS
] + [re.compile(r"```\n?")]

# Missing-module signatures. Each entry: (trigger substring, extraction regex).
# The extraction regex captures the quoted module identifier.
MISSING_MODULE_PATTERNS = [
    ("Cannot find module", re.compile(r"""Cannot find module ['"]([^'"]+)['"]""")),
    ("Module not found", re.compile(r"""Module not found.*?['"]([^'"\s]+)['"]""")),
]

UNDEFINED_REFERENCE_TRIGGER = "is not defined"
UNDEFINED_REFERENCE_PATTERN = re.compile(r"([A-Za-z_$][\w$]*) is not defined")

# Elements the preview's own error UI flags as errors.
ERROR_SELECTORS = ".sp-error, .error-message, [data-error=\"true\"]"

# Bare specifiers the preview can always resolve.
PREVIEW_MODULES = ["react", "react-dom", "react-dom/client", "react/jsx-runtime"]

# Browser diagnostics worth acting on, and noise to ignore even when it
# contains one of the signals.
DIAGNOSTIC_SIGNALS = [
    "is not defined", "is not a function",
    "Cannot read prop", "Cannot find module", "Module not found",
    "SyntaxError", "ReferenceError", "TypeError",
    "does not provide an export",
]
DIAGNOSTIC_NOISE = [
    "favicon", "Warning:", "DevTools", "Download the React",
    "net::ERR_", "Failed to load resource",
    "Cross-Origin", "Content-Security-Policy", "cdn.tailwindcss.com",
]
