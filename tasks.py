"""Invoke tasks for Docvault development workflows.

Every task shells out to the `uv` CLI so environment syncs, builds, tests, and
lint runs use the same toolchain locally and in CI.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"
SANDBOX_DIR = PROJECT_ROOT / ".sandbox"
SAMPLE_DOCUMENTS = {
    "Passport scan.txt": "Passport number X1234567\n",
    "Resume 2024.md": "# Curriculum vitae\n",
    "Tax receipt March.csv": "item,amount\nbooks,12.50\n",
    "Notes.txt": "Miscellaneous notes\n",
}


def _run_uv(
    ctx: Context,
    args: Sequence[str],
    *,
    echo: bool = True,
    env: Mapping[str, str] | None = None,
) -> None:
    """Execute a uv command with consistent quoting and PTY defaults.

    Args:
        ctx: Invoke execution context.
        args: Arguments appended after the `uv` executable.
        echo: Whether to echo the command before running it.
        env: Optional environment variables layered onto the invocation.
    """
    command = shlex.join(("uv", *args))
    run_env = dict(ctx.config.run.env or {})
    if env:
        run_env.update(env)
    ctx.run(command, echo=echo, pty=True, env=run_env)


@task
def sync(ctx: Context, dev: bool = True) -> None:
    """Synchronize the virtual environment, including the dev extra by default."""
    args = ["sync"]
    if dev:
        args.extend(["--extra", "dev"])
    _run_uv(ctx, args)


@task(help={"clean": "Remove existing artifacts from dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build source and wheel distributions in `dist/`."""
    if clean and DIST_DIR.exists():
        shutil.rmtree(DIST_DIR)
    _run_uv(ctx, ["build"])


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Path or module to test (defaults to tests/).",
        "options": "Additional CLI flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite.

    Args:
        ctx: Invoke execution context.
        k: `pytest -k` expression to select tests.
        path: Target path for pytest discovery.
        options: Extra CLI arguments appended to the pytest call.
    """
    args: list[str] = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    if path:
        args.append(path)
    _run_uv(ctx, args)


@task(
    help={
        "fix": "Apply auto-fixes where possible (ruff --fix).",
        "check_format": "Run ruff format --check before linting.",
    }
)
def lint(ctx: Context, fix: bool = False, check_format: bool = False) -> None:
    """Run Ruff formatting and lint checks."""
    if check_format:
        _run_uv(ctx, ["run", "ruff", "format", "--check", "src", "tests"])
    lint_args: list[str] = ["run", "ruff", "check", "src", "tests"]
    if fix:
        lint_args.append("--fix")
    _run_uv(ctx, lint_args)


@task
def mypy(ctx: Context) -> None:
    """Type-check the package and the task collection."""
    _run_uv(ctx, ["run", "mypy", "src", "tasks.py"])


@task(help={"reset": "Delete the sandbox vault before seeding it again."})
def sandbox(ctx: Context, reset: bool = False) -> None:
    """Seed a throwaway vault under `.sandbox/` with sample documents and list it.

    The sandbox uses its own HOME so the developer's configuration is untouched.

    Args:
        ctx: Invoke execution context.
        reset: Remove any previous sandbox first.
    """
    if reset and SANDBOX_DIR.exists():
        shutil.rmtree(SANDBOX_DIR)
    inbox = SANDBOX_DIR / "inbox"
    vault = SANDBOX_DIR / "vault"
    inbox.mkdir(parents=True, exist_ok=True)
    env = {"HOME": str(SANDBOX_DIR / "home")}

    for name, content in SAMPLE_DOCUMENTS.items():
        sample = inbox / name
        sample.write_text(content, encoding="utf-8")
        _run_uv(ctx, ["run", "docvault", "--vault", str(vault), "import", str(sample)], env=env)
    _run_uv(ctx, ["run", "docvault", "--vault", str(vault), "ls"], env=env)


@task
def ci(ctx: Context) -> None:
    """Replicate the CI workflow locally."""
    ctx.invoke(lint, check_format=True)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, build, tests, lint, mypy, sandbox, ci)
