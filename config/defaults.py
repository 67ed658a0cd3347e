"""Default session and endpoint settings."""

DEFAULTS = {
    "model": "claude-sonnet-4-5-20250929",
    "max_tokens": 4096,
    "temperature": 0.7,
    "endpoint": "http://127.0.0.1:5001/api/generateCode",
    "request_timeout": None,    # no explicit timeout, the transport decides
    "settle_delay": 3.0,        # seconds before the first check after a generation
    "poll_interval": 5.0,       # seconds between periodic error checks
    "max_auto_fix_attempts": 3,
    "toolkit": "React, TypeScript, and Tailwind CSS",
    "preview_timeout_ms": 30000,
    "preview_settle_ms": 1500,
    "tailwind_cdn": "https://cdn.tailwindcss.com",
    "babel_cdn": "https://unpkg.com/@babel/standalone/babel.min.js",
    "esm_cdn": "https://esm.sh",
    "react_version": "18.3.1",
}
