"""Diagnostic tool for verifying the curlfetch installation and the curl binary."""

import subprocess
import sys
from collections.abc import Sequence
from importlib import import_module
from pathlib import Path
from typing import Optional

from .models.config import DEFAULT_CURL_PATHS
from .tool import describe_paths, locate

try:
    from rich.console import Console
    from rich.table import Table

    RICH_AVAILABLE = True
except ImportError:
    RICH_AVAILABLE = False
    Console = None  # type: ignore
    Table = None  # type: ignore


def check_dependency(
    module_name: str, package_name: Optional[str] = None, optional: bool = False
) -> tuple[bool, str]:
    """
    Check if a Python module is importable.

    Args:
        module_name: Name of the module to import
        package_name: Display name of the package (defaults to module_name)
        optional: Whether this is an optional dependency

    Returns:
        Tuple of (success: bool, message: str)
    """
    display_name = package_name or module_name

    try:
        import_module(module_name)
        return True, f"[OK] {display_name}"
    except ImportError:
        if optional:
            return False, f"[WARN] {display_name} (optional - not installed)"
        return False, f"[MISSING] {display_name}"


def check_tool(candidate_paths: Sequence[Path]) -> tuple[bool, str]:
    """Check that curl exists at one of the candidate paths."""
    tool = locate(candidate_paths)
    if tool is None:
        return False, f"[MISSING] curl (searched {describe_paths(candidate_paths)})"
    return True, f"[OK] curl found at {tool}"


def check_tool_version(candidate_paths: Sequence[Path]) -> tuple[bool, str]:
    """
    Run "curl --version" to make sure the binary actually executes.

    Returns:
        Tuple of (success: bool, message: str)
    """
    tool = locate(candidate_paths)
    if tool is None:
        return False, "[SKIP] curl version - binary not found"

    try:
        completed = subprocess.run(
            [str(tool), "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        return False, f"[FAIL] curl version - {e}"

    if completed.returncode != 0:
        return False, f"[FAIL] curl version - exit code {completed.returncode}"
    first_line = completed.stdout.splitlines()[0] if completed.stdout else "unknown version"
    return True, f"[OK] {first_line}"


def run_doctor(candidate_paths: Optional[Sequence[Path]] = None, use_rich: bool = True) -> int:
    """
    Run diagnostic checks and display results.

    Args:
        candidate_paths: Paths to check for curl (defaults to the built-in list)
        use_rich: Whether to use rich formatting (if available)

    Returns:
        Exit code (0 if core dependencies and curl are OK, 1 otherwise)
    """
    use_rich = use_rich and RICH_AVAILABLE
    paths = list(candidate_paths) if candidate_paths else list(DEFAULT_CURL_PATHS)

    print("Running curlfetch diagnostics...\n")

    core_checks = [
        ("pydantic", "pydantic"),
        ("rich", "rich"),
    ]
    optional_checks = [
        ("yaml", "pyyaml", True),
    ]

    core_results = [check_dependency(mod, pkg) for mod, pkg in core_checks]
    optional_results = [check_dependency(mod, pkg, opt) for mod, pkg, opt in optional_checks]
    tool_results = [check_tool(paths), check_tool_version(paths)]

    all_checks = {
        "Core Dependencies": core_results,
        "Optional Dependencies": optional_results,
        "External Tool": tool_results,
    }

    if use_rich:
        console = Console()

        for category, results in all_checks.items():
            table = Table(title=category, show_header=False, box=None)
            table.add_column("Status", style="bold")

            for success, message in results:
                style = "green" if success else ("yellow" if "optional" in message else "red")
                table.add_row(message, style=style)

            console.print(table)
            console.print()
    else:
        for category, results in all_checks.items():
            print(f"{category}:")
            for _success, message in results:
                print(f"  {message}")
            print()

    core_failed = any(not success for success, _ in core_results)
    tool_failed = any(not success for success, _ in tool_results)

    if core_failed:
        print("\nWARNING: Some core dependencies are missing!")
        print("\nRecommended fixes:")
        print("  1. For pip users: pip install --upgrade --force-reinstall curlfetch")
        print("  2. For development: pip install -e .[dev]")
        return 1
    if tool_failed:
        print("\nWARNING: curl is not usable, every fetch will fail.")
        print("\nInstall curl with your system package manager, or list its location")
        print("under tool.candidate_paths in a config file.")
        return 1

    print("\nEverything needed for fetching is in place!")
    if any(not success for success, _ in optional_results):
        print("\nOptional features available:")
        print("  - YAML config support: pip install curlfetch[yaml]")
    return 0


if __name__ == "__main__":
    sys.exit(run_doctor())
