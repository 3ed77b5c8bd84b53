"""Startup preflight check: deps must be present, credentials only warn."""
from rich.console import Console

from .config import (
    APP_VERSION,
    CHANNEL_ACCESS_TOKEN,
    CHANNEL_SECRET,
    PUBLIC_DIR,
    YOUTUBE_API_KEY,
)

console = Console()


def run_preflight() -> bool:
    """
    Run all startup checks. Print results. Return False only if a hard check fails.
    """
    console.print(f"\n  [bold]♪  Song Relay v{APP_VERSION}[/bold] preflight check\n")

    checks = [
        ("Python deps", _check_python_deps, True),
        ("YouTube API key", _check_youtube_key, False),
        ("LINE access token", _check_line_token, False),
        ("LINE channel secret", _check_line_secret, False),
        ("Player page", _check_public_dir, False),
    ]

    results = []
    for i, (label, fn, required) in enumerate(checks, 1):
        ok, msg, fix = fn()
        results.append((ok, required, label, fix))
        if ok:
            icon, status = "[green]✓[/green]", f"[green]{msg}[/green]"
        elif required:
            icon, status = "[red]✗[/red]", f"[red]{msg}[/red]"
        else:
            icon, status = "[yellow]![/yellow]", f"[yellow]{msg}[/yellow]"
        dots = "." * max(30 - len(label), 3)
        console.print(f"  [{i}/{len(checks)}] {label} {dots} {icon} {status}")

    failures = [(label, fix) for ok, required, label, fix in results if not ok and required and fix]
    warnings = [(label, fix) for ok, required, label, fix in results if not ok and not required and fix]

    if warnings:
        console.print("")
        for label, fix in warnings:
            console.print(f"  [yellow]{label}:[/yellow] {fix}")

    if failures:
        console.print("")
        for label, fix in failures:
            console.print(f"  [red]Fix for {label}:[/red]")
            for line in fix.strip().splitlines():
                console.print(f"    {line}")
        console.print("\n  Then re-run: [bold]python relay.py[/bold]\n")
        return False

    console.print("")
    return True


def _check_python_deps() -> tuple[bool, str, str]:
    missing = []
    versions = []
    try:
        import httpx
        versions.append(f"httpx {httpx.__version__}")
    except ImportError:
        missing.append("httpx")

    try:
        import starlette
        versions.append(f"starlette {starlette.__version__}")
    except ImportError:
        missing.append("starlette")

    try:
        import uvicorn
        versions.append(f"uvicorn {uvicorn.__version__}")
    except ImportError:
        missing.append("uvicorn")

    if missing:
        return False, f"missing: {', '.join(missing)}", "Run: pip install -e ."
    return True, ", ".join(versions), ""


def _check_youtube_key() -> tuple[bool, str, str]:
    if YOUTUBE_API_KEY:
        return True, "set", ""
    return False, "not set", "keyword search disabled; only URLs and commands will work."


def _check_line_token() -> tuple[bool, str, str]:
    if CHANNEL_ACCESS_TOKEN:
        return True, "set", ""
    return False, "not set", "bot replies will be dropped (broadcasts still work)."


def _check_line_secret() -> tuple[bool, str, str]:
    if CHANNEL_SECRET:
        return True, "set", ""
    return False, "not set", "webhook signatures will NOT be verified."


def _check_public_dir() -> tuple[bool, str, str]:
    if PUBLIC_DIR.is_dir():
        return True, str(PUBLIC_DIR.name), ""
    return False, "missing", f"nothing served at / (expected {PUBLIC_DIR})."
