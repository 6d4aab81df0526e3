#!/usr/bin/env python3
"""
Pseudoku: start the OAuth token exchange backend
Cross-platform launcher (Windows / macOS / Linux)

Usage:  python start.py
Needs GITHUB_CLIENT_ID and GITHUB_CLIENT_SECRET in the environment.
"""

import os
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import Iterable

# ── ANSI helpers (works on Win 10+ / macOS / Linux) ─────────────────────────
CYAN    = "\033[96m"
GREEN   = "\033[92m"
YELLOW  = "\033[93m"
RED     = "\033[91m"
WHITE   = "\033[97m"
RESET   = "\033[0m"

# Enable ANSI escape codes on Windows
if sys.platform == "win32":
    os.system("")  # triggers VT100 mode in cmd / powershell

ROOT = Path(__file__).resolve().parent


def check_credentials() -> bool:
    """Warn early when the backend would answer 503 to every exchange."""
    missing = [name for name in ("GITHUB_CLIENT_ID", "GITHUB_CLIENT_SECRET") if not os.environ.get(name)]
    if missing:
        print(f"{YELLOW}  Missing {', '.join(missing)}; /oauth/exchange will be disabled.{RESET}")
        return False
    return True


def relay_lines(lines: Iterable[str], label: str = "OAUTH", color: str = WHITE, out=None):
    """Echo backend output with a coloured tag, dropping blank lines."""
    if out is None:
        out = sys.stdout
    for raw in lines:
        text = raw.rstrip("\r\n")
        if text:
            print(f"  {color}[{label}]{RESET} {text}", file=out)


def backend_command(python: str) -> list:
    host = os.environ.get("PSEUDOKU_HOST", "127.0.0.1")
    port = os.environ.get("PSEUDOKU_PORT", "8000")
    return [python, "-m", "uvicorn", "pseudoku.api.server:app", "--host", host, "--port", port]


def stop_backend(proc: subprocess.Popen, grace: float = 5.0) -> int:
    """Ask uvicorn to shut down, kill it after `grace` seconds; returns the exit code."""
    if proc.poll() is not None:
        return proc.returncode
    # no SIGTERM on Windows
    if sys.platform == "win32":
        proc.terminate()
    else:
        proc.send_signal(signal.SIGTERM)
    try:
        return proc.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        proc.kill()
        return proc.wait()


# ── Main ───────────────────────────────────────────────────────────────────
def main():
    print(f"\n{CYAN}  Starting Pseudoku OAuth backend...{RESET}\n")
    check_credentials()

    server_proc = subprocess.Popen(
        backend_command(sys.executable),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
        cwd=str(ROOT),
        env={**os.environ, "PYTHONIOENCODING": "utf-8", "PYTHONUNBUFFERED": "1"},
    )
    print(f"  {GREEN}Token exchange backend started (PID {server_proc.pid}){RESET}")
    print(f"\n{YELLOW}  Press Ctrl+C to stop.{RESET}\n")

    threading.Thread(target=relay_lines, args=(server_proc.stdout,), daemon=True).start()

    try:
        code = server_proc.wait()
        print(f"\n{RED}  Backend exited (code {code}).{RESET}")
    except KeyboardInterrupt:
        print(f"\n{YELLOW}  Shutting down...{RESET}")
        stop_backend(server_proc)
    print(f"  {GREEN}Backend stopped.{RESET}\n")


if __name__ == "__main__":
    main()
