#!/usr/bin/env python3
"""IncidentFusion — pre-flight environment validation.

Checks:
  1. Python version compatibility (3.10+)
  2. Required package imports
  3. IncidentFusion module imports
  4. Environment variable presence
  5. Area definitions and output directory
  6. Optional LLM backend and geocoder connectivity

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


# ── ANSI colours ────────────────────────────────────────────────────────────────
_GREEN = "\033[32m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"
_BOLD = "\033[1m"


def _ok(msg: str) -> str:
    return f"{_GREEN}✓{_RESET}  {msg}"


def _fail(msg: str) -> str:
    return f"{_RED}✗{_RESET}  {msg}"


def _warn(msg: str) -> str:
    return f"{_YELLOW}⚠{_RESET}  {msg}"


def _header(msg: str) -> str:
    return f"\n{_BOLD}{msg}{_RESET}"


# ── Check functions ──────────────────────────────────────────────────────────────

def check_python_version() -> Tuple[bool, str]:
    """Verify Python version is 3.10 or newer."""
    major, minor = sys.version_info[:2]
    version_str = f"{major}.{minor}.{sys.version_info.micro}"
    if major < 3 or (major == 3 and minor < 10):
        return False, f"Python {version_str} detected, requires >= 3.10"
    return True, f"Python {version_str}"


def _import_results(packages: List[Tuple[str, str]], optional: bool) -> List[Tuple[Optional[bool], str]]:
    results: List[Tuple[Optional[bool], str]] = []
    for import_name, package_name in packages:
        try:
            mod = importlib.import_module(import_name)
            version = getattr(mod, "__version__", "?")
            results.append((True, f"{package_name} ({version})"))
        except ImportError:
            if optional:
                results.append((None, f"{package_name} not installed (optional)"))
            else:
                results.append((False, f"{package_name} NOT installed (pip install {package_name})"))
    return results


def check_package_imports() -> List[Tuple[Optional[bool], str]]:
    """Verify all required packages can be imported."""
    return _import_results(
        [
            ("requests", "requests"),
            ("dotenv", "python-dotenv"),
            ("dateutil", "python-dateutil"),
            ("yaml", "PyYAML"),
        ],
        optional=False,
    )


def check_optional_package_imports() -> List[Tuple[Optional[bool], str]]:
    """Check optional packages (LLM backends, dev tools)."""
    return _import_results(
        [
            ("anthropic", "anthropic"),
            ("ollama", "ollama"),
            ("pytest", "pytest"),
        ],
        optional=True,
    )


def check_incidentfusion_imports() -> List[Tuple[bool, str]]:
    """Verify the incidentfusion package modules can be imported."""
    modules = [
        "config.defaults",
        "config.settings",
        "incidentfusion.models.posts",
        "incidentfusion.models.events",
        "incidentfusion.models.sentiment",
        "incidentfusion.models.image",
        "incidentfusion.models.pipeline",
        "incidentfusion.analysis.duplicate_detector",
        "incidentfusion.analysis.location_inferencer",
        "incidentfusion.analysis.sentiment_aggregator",
        "incidentfusion.analysis.alert_evaluator",
        "incidentfusion.analysis.area_manager",
        "incidentfusion.analysis.image_triage",
        "incidentfusion.agents.synthesis_agent",
        "incidentfusion.agents.sentiment_agent",
        "incidentfusion.agents.image_agent",
        "incidentfusion.clients.llm_client",
        "incidentfusion.clients.geocoding_client",
        "incidentfusion.io.persistence",
        "incidentfusion.pipeline",
    ]
    results = []
    for module in modules:
        try:
            importlib.import_module(module)
            results.append((True, module))
        except ImportError as exc:
            results.append((False, f"{module}: {exc}"))
    return results


def check_env_vars() -> List[Tuple[Optional[bool], str]]:
    """Check presence of important environment variables."""
    from dotenv import load_dotenv

    load_dotenv()

    results: List[Tuple[Optional[bool], str]] = []

    backend = os.getenv("LLM_BACKEND", "ollama")
    results.append((True, f"LLM_BACKEND = {backend!r} (default: ollama)"))

    # ANTHROPIC_API_KEY is required only when backend=anthropic
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if api_key:
        masked = api_key[:8] + "..." + api_key[-4:] if len(api_key) > 12 else "***"
        results.append((True, f"ANTHROPIC_API_KEY = {masked}"))
    elif backend == "anthropic":
        results.append((False, "ANTHROPIC_API_KEY not set (required for Anthropic backend)"))
    else:
        results.append((None, "ANTHROPIC_API_KEY not set (required for Anthropic backend)"))

    ollama_host = os.getenv("OLLAMA_HOST", "http://localhost:11434")
    results.append((True, f"OLLAMA_HOST = {ollama_host!r}"))

    geocoding = os.getenv("GEOCODING_ENABLED", "false")
    results.append((True, f"GEOCODING_ENABLED = {geocoding!r}"))

    for name, default in (
        ("AREAS_FILE", "config/areas.yaml"),
        ("SCORE_STORE_PATH", "outputs/sentiment_scores.json"),
        ("OUTPUT_ROOT", "outputs/runs"),
    ):
        results.append((True, f"{name} = {os.getenv(name, default)!r}"))

    return results


def check_areas_file() -> Tuple[bool, str]:
    """Verify the area definitions file loads."""
    from config.settings import PipelineConfig
    from incidentfusion.analysis.area_manager import load_areas

    path = PipelineConfig().areas_file
    try:
        areas = load_areas(path)
    except (OSError, ValueError) as exc:
        return False, f"Area definitions not loadable ({path}): {exc}"
    if not areas:
        return False, f"No areas defined in {path}"
    return True, f"{len(areas)} areas loaded from {path}"


def check_output_dir() -> Tuple[bool, str]:
    """Verify the output root directory is writable."""
    from dotenv import load_dotenv

    load_dotenv()

    output_root = os.getenv("OUTPUT_ROOT", "outputs/runs")
    output_path = _ROOT / output_root

    try:
        output_path.mkdir(parents=True, exist_ok=True)
        test_file = output_path / ".write_test"
        test_file.write_text("ok")
        test_file.unlink()
        return True, f"Output directory writable: {output_path}"
    except OSError as exc:
        return False, f"Output directory not writable ({output_path}): {exc}"


def check_ollama_connectivity(host: str = "http://localhost:11434", timeout: int = 5) -> Tuple[bool, str]:
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
    except requests.RequestException as exc:
        return False, f"Ollama not reachable at {host}: {exc}"
    if resp.status_code != 200:
        return False, f"Ollama at {host} returned HTTP {resp.status_code}"
    try:
        data = resp.json()
    except ValueError:
        return False, f"Ollama at {host} returned a non-JSON body"
    model_names = [m.get("name", "?") for m in data.get("models", [])]
    model_str = ", ".join(model_names[:5]) or "no models found"
    return True, f"Ollama running at {host}, models: {model_str}"


def check_geocoder_connectivity(timeout: int = 10) -> Tuple[bool, str]:
    """Reverse geocode a fixed point to verify the geocoding service answers."""
    from config.settings import PipelineConfig
    from incidentfusion.clients.geocoding_client import GeocodingClient

    cfg = PipelineConfig()
    client = GeocodingClient(
        base_url=cfg.geocoding_base_url,
        request_timeout=timeout,
        user_agent=cfg.geocoding_user_agent,
    )
    try:
        address = client.reverse(37.7749, -122.4194)
    finally:
        client.close()
    if address is None:
        return False, f"Geocoder at {cfg.geocoding_base_url} gave no result"
    return True, f"Geocoder reachable: {address.get('address') or address.get('city') or 'ok'}"


# ── Report ───────────────────────────────────────────────────────────────────────

def _print_results(results: List[Tuple], indent: int = 2) -> int:
    """Print check results and return count of failures."""
    failures = 0
    pad = " " * indent
    for item in results:
        ok, msg = item[0], item[1]
        if ok is True:
            print(f"{pad}{_ok(msg)}")
        elif ok is False:
            print(f"{pad}{_fail(msg)}")
            failures += 1
        else:
            # None = optional / warning
            print(f"{pad}{_warn(msg)}")
    return failures


def main() -> None:
    """Run all pre-flight checks and report results."""
    parser = argparse.ArgumentParser(
        description="IncidentFusion — pre-flight environment validation",
    )
    parser.add_argument(
        "--skip-network",
        action="store_true",
        default=False,
        help="Skip network connectivity checks (Ollama ping, geocoder ping)",
    )
    parser.add_argument(
        "--llm-backend",
        type=str,
        default=None,
        choices=["anthropic", "ollama"],
        help="LLM backend to test connectivity for",
    )
    parser.add_argument(
        "--ollama-host",
        type=str,
        default="http://localhost:11434",
        help="Ollama server URL to ping",
    )
    args = parser.parse_args()

    total_failures = 0

    print(f"\n{_BOLD}╔══════════════════════════════════════════════════════╗{_RESET}")
    print(f"{_BOLD}║  IncidentFusion — Environment Validation              ║{_RESET}")
    print(f"{_BOLD}╚══════════════════════════════════════════════════════╝{_RESET}")

    print(_header("1. Python Version"))
    ok, msg = check_python_version()
    print(f"  {_ok(msg) if ok else _fail(msg)}")
    if not ok:
        total_failures += 1

    print(_header("2. Required Package Imports"))
    required = check_package_imports()
    total_failures += _print_results(required)

    print(_header("3. Optional Packages"))
    _print_results(check_optional_package_imports())

    # Module and config checks need the required packages
    if any(ok is False for ok, _ in required):
        print(_header("4. IncidentFusion Module Imports"))
        print(f"  {_warn('Skipped (required packages missing)')}")
    else:
        print(_header("4. IncidentFusion Module Imports"))
        total_failures += _print_results(check_incidentfusion_imports())

        print(_header("5. Environment Variables"))
        total_failures += _print_results(check_env_vars())

        print(_header("6. Areas and Output Directory"))
        total_failures += _print_results([check_areas_file(), check_output_dir()])

        print(_header("7. Network Connectivity"))
        if args.skip_network:
            print(f"  {_warn('Skipped (--skip-network)')}")
        else:
            backend = args.llm_backend or os.getenv("LLM_BACKEND", "ollama")
            if backend == "ollama":
                ok, msg = check_ollama_connectivity(host=args.ollama_host)
                print(f"  {_ok(msg) if ok else _warn(msg)}")
            if os.getenv("GEOCODING_ENABLED", "").lower() in ("1", "true", "yes", "on"):
                ok, msg = check_geocoder_connectivity()
                print(f"  {_ok(msg) if ok else _warn(msg)}")

    # ── Summary ──────────────────────────────────────────────────────────────────
    print(f"\n{'═' * 54}")
    if total_failures == 0:
        print(f"{_GREEN}{_BOLD}All required checks passed.{_RESET} Environment is ready.")
        sys.exit(0)
    else:
        print(
            f"{_RED}{_BOLD}{total_failures} check(s) failed.{_RESET} "
            "Resolve the errors above before running the pipeline."
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
