#!/usr/bin/env python3
"""PhotoGeo pre-flight environment validation.

Checks:
  1. Python version compatibility (3.10+)
  2. Required package imports
  3. PhotoGeo module imports
  4. Environment variables and LLM credentials
  5. Output directory
  6. Nominatim and (optionally) Ollama connectivity

Usage:
    python scripts/validate_env.py
    python scripts/validate_env.py --skip-network
    python scripts/validate_env.py --llm-backend anthropic
"""

from __future__ import annotations

import argparse
import importlib
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

# Ensure project root is on sys.path
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from dotenv import load_dotenv  # noqa: E402

load_dotenv()


# ── ANSI colours ────────────────────────────────────────────────────────────────
_GREEN = "\033[32m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"
_BOLD = "\033[1m"

# (ok, message); ok None means warning only
CheckResult = Tuple[Optional[bool], str]


def _ok(msg: str) -> str:
    return f"{_GREEN}✓{_RESET}  {msg}"


def _fail(msg: str) -> str:
    return f"{_RED}✗{_RESET}  {msg}"


def _warn(msg: str) -> str:
    return f"{_YELLOW}⚠{_RESET}  {msg}"


def _header(msg: str) -> str:
    return f"\n{_BOLD}{msg}{_RESET}"


# ── Check functions ──────────────────────────────────────────────────────────────

def check_python_version() -> CheckResult:
    """Verify Python version is 3.10 or newer."""
    major, minor = sys.version_info[:2]
    version_str = f"{major}.{minor}.{sys.version_info.micro}"
    if (major, minor) < (3, 10):
        return False, f"Python {version_str} detected, requires >= 3.10"
    return True, f"Python {version_str}"


def check_package_imports() -> List[CheckResult]:
    """Verify all required packages can be imported."""
    required = [
        ("requests", "requests"),
        ("dotenv", "python-dotenv"),
        ("yaml", "PyYAML"),
        ("PIL", "Pillow"),
        ("piexif", "piexif"),
        ("anthropic", "anthropic"),
        ("ollama", "ollama"),
    ]
    results: List[CheckResult] = []
    for import_name, package_name in required:
        try:
            mod = importlib.import_module(import_name)
            version = getattr(mod, "__version__", getattr(mod, "VERSION", "?"))
            results.append((True, f"{package_name} ({version})"))
        except ImportError:
            results.append((False, f"{package_name} NOT installed (pip install {package_name})"))
    return results


def check_photogeo_imports() -> List[CheckResult]:
    """Verify the photogeo package modules can be imported."""
    modules = [
        "config.defaults",
        "config.settings",
        "photogeo.models",
        "photogeo.extraction.metadata_source",
        "photogeo.extraction.metadata_extractor",
        "photogeo.clients.geocoding_client",
        "photogeo.clients.llm_client",
        "photogeo.analysis.location_resolver",
        "photogeo.analysis.ai_estimator",
        "photogeo.io.image_loader",
        "photogeo.io.persistence",
        "photogeo.pipeline",
    ]
    results: List[CheckResult] = []
    for module in modules:
        try:
            importlib.import_module(module)
            results.append((True, module))
        except ImportError as exc:
            results.append((False, f"{module}: {exc}"))
    return results


def _mask(value: str) -> str:
    return value[:8] + "..." + value[-4:] if len(value) > 12 else "***"


def check_env_vars(backend: str) -> List[CheckResult]:
    """Check configuration variables; a missing key for the active backend fails."""
    results: List[CheckResult] = [(True, f"LLM_BACKEND = {backend!r} (default: ollama)")]

    api_key = os.getenv("ANTHROPIC_API_KEY")
    if api_key:
        results.append((True, f"ANTHROPIC_API_KEY = {_mask(api_key)}"))
    elif backend == "anthropic":
        results.append((False, "ANTHROPIC_API_KEY not set (required for the anthropic backend)"))
    else:
        results.append((None, "ANTHROPIC_API_KEY not set (only needed for the anthropic backend)"))

    ollama_host = os.getenv("OLLAMA_HOST", "http://localhost:11434")
    results.append((True, f"OLLAMA_HOST = {ollama_host!r}"))
    if "ollama.com" in ollama_host and not os.getenv("OLLAMA_API_KEY"):
        level = False if backend == "ollama" else None
        results.append((level, "OLLAMA_API_KEY not set (required for Ollama Cloud)"))

    user_agent = os.getenv("GEOCODER_USER_AGENT")
    if user_agent:
        results.append((True, f"GEOCODER_USER_AGENT = {user_agent!r}"))
    else:
        results.append((None, "GEOCODER_USER_AGENT not set (using the built-in default)"))

    output_root = os.getenv("OUTPUT_ROOT", "outputs/records")
    results.append((True, f"OUTPUT_ROOT = {output_root!r}"))
    return results


def check_output_dir() -> CheckResult:
    """Verify the output root directory is writable."""
    output_path = _ROOT / os.getenv("OUTPUT_ROOT", "outputs/records")
    try:
        output_path.mkdir(parents=True, exist_ok=True)
        test_file = output_path / ".write_test"
        test_file.write_text("ok")
        test_file.unlink()
        return True, f"Output directory writable: {output_path}"
    except OSError as exc:
        return False, f"Output directory not writable ({output_path}): {exc}"


def check_nominatim_connectivity() -> CheckResult:
    """Run one reverse query against the configured Nominatim endpoint."""
    from config.settings import LocatorConfig
    from photogeo.clients.geocoding_client import GeocodingClient

    config = LocatorConfig()
    with GeocodingClient.from_config(config) as client:
        if client.ping():
            return True, f"Nominatim reachable at {config.nominatim_url}"
    return False, f"Nominatim unreachable at {config.nominatim_url}"


def check_ollama_connectivity(host: str, timeout: int = 5) -> CheckResult:
    """Ping the Ollama server to verify it is running.

    Args:
        host: Ollama server URL.
        timeout: HTTP request timeout in seconds.

    Returns:
        (success, message) tuple.
    """
    import requests

    try:
        resp = requests.get(f"{host}/api/tags", timeout=timeout)
    except requests.exceptions.RequestException as exc:
        return False, f"Ollama not reachable at {host}: {exc}"
    if resp.status_code != 200:
        return False, f"Ollama at {host} returned HTTP {resp.status_code}"
    model_names = [m.get("name", "?") for m in resp.json().get("models", [])]
    return True, f"Ollama running at {host}, models: {', '.join(model_names[:5]) or 'none'}"


# ── Report ───────────────────────────────────────────────────────────────────────

def _print_results(results: List[CheckResult], indent: int = 2) -> int:
    """Print check results and return count of failures."""
    failures = 0
    pad = " " * indent
    for ok, msg in results:
        if ok is True:
            print(f"{pad}{_ok(msg)}")
        elif ok is False:
            print(f"{pad}{_fail(msg)}")
            failures += 1
        else:
            print(f"{pad}{_warn(msg)}")
    return failures


def main() -> None:
    """Run all pre-flight checks and report results."""
    parser = argparse.ArgumentParser(description="PhotoGeo pre-flight environment validation")
    parser.add_argument(
        "--skip-network",
        action="store_true",
        default=False,
        help="Skip network connectivity checks (Nominatim, Ollama)",
    )
    parser.add_argument(
        "--llm-backend",
        type=str,
        default=None,
        choices=["anthropic", "ollama"],
        help="LLM backend to validate credentials and connectivity for",
    )
    args = parser.parse_args()
    backend = (args.llm_backend or os.getenv("LLM_BACKEND", "ollama")).lower()

    total_failures = 0
    print(f"\n{_BOLD}PhotoGeo Environment Validation{_RESET}")

    print(_header("1. Python Version"))
    total_failures += _print_results([check_python_version()])

    print(_header("2. Required Package Imports"))
    total_failures += _print_results(check_package_imports())

    print(_header("3. PhotoGeo Module Imports"))
    total_failures += _print_results(check_photogeo_imports())

    print(_header("4. Environment Variables"))
    total_failures += _print_results(check_env_vars(backend))

    print(_header("5. Output Directory"))
    total_failures += _print_results([check_output_dir()])

    print(_header("6. Network Connectivity"))
    if args.skip_network:
        print(f"  {_warn('Skipped (--skip-network)')}")
    else:
        # Connectivity problems are warnings, not hard failures
        ok, msg = check_nominatim_connectivity()
        print(f"  {_ok(msg) if ok else _warn(msg)}")
        if backend == "ollama":
            ok, msg = check_ollama_connectivity(os.getenv("OLLAMA_HOST", "http://localhost:11434"))
            print(f"  {_ok(msg) if ok else _warn(msg)}")

    print(f"\n{'=' * 54}")
    if total_failures == 0:
        print(f"{_GREEN}{_BOLD}All required checks passed.{_RESET} Environment is ready.")
        sys.exit(0)
    print(
        f"{_RED}{_BOLD}{total_failures} check(s) failed.{_RESET} "
        "Resolve the errors above before locating images."
    )
    sys.exit(1)


if __name__ == "__main__":
    main()
