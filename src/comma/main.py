"""
Console entry point for comma.

Generates a commit message for the staged changes of the current repository,
shows any sensitive data findings and convention warnings, and commits after
confirmation. All configuration comes from the environment (and .env).
"""

import asyncio
import logging
import sys
from typing import Callable, Optional, TextIO

from .config import Settings, load_settings
from .errors import CommaError, NoChangesError, format_error_for_user
from .logging_config import configure_logging
from .pipeline import GenerationOrchestrator, GenerationResult
from .vcs import VersionControl

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def render_result(result: GenerationResult, out: TextIO) -> None:
    """Print the generated message with its findings and warnings."""
    source = "cache" if result.from_cache else result.used_provider
    if result.fallback_used:
        source += " (fallback)"

    out.write(f"\nGenerated commit message ({source}):\n\n")
    out.write(result.message + "\n\n")

    if result.findings:
        out.write(f"⚠️  Potential sensitive data in {len(result.findings)} place(s):\n")
        for finding in result.findings:
            out.write(f"  - {finding}\n")
        out.write("\n")

    if result.convention_errors:
        out.write("⚠️  Team convention warnings:\n")
        for error in result.convention_errors:
            out.write(f"  - {error}\n")
        out.write("\n")


async def run(
    settings: Settings,
    vcs: VersionControl,
    input_fn: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
    orchestrator: Optional[GenerationOrchestrator] = None
) -> int:
    """
    Generate, confirm and commit.

    Returns:
        Process exit code
    """
    orchestrator = orchestrator or GenerationOrchestrator(settings)

    async with orchestrator:
        try:
            result = await orchestrator.generate_for_repository(vcs)
        except NoChangesError as e:
            out.write(f"{e}. Stage files with 'git add' first.\n")
            return EXIT_ERROR

        render_result(result, out)

        if not result.message:
            out.write("The model returned an empty message; nothing to commit.\n")
            return EXIT_ERROR

        answer = input_fn("Commit with this message? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            out.write("Commit cancelled.\n")
            return EXIT_OK

        await orchestrator.commit(vcs, result.message)
        out.write("✅ Committed.\n")
        return EXIT_OK


def main() -> int:
    """Entry point for the `comma` console script."""
    configure_logging()

    # Imported here so that the rest of the package works without git installed
    from .vcs.git_repository import GitRepository

    try:
        settings = load_settings()
        vcs = GitRepository(".")
        return asyncio.run(run(settings, vcs))
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return EXIT_INTERRUPTED
    except CommaError as e:
        logger.debug("Generation failed", exc_info=True)
        sys.stderr.write(format_error_for_user(e, detailed=True) + "\n")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
