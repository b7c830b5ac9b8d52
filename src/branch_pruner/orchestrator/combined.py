"""Remote and local pruning in one run."""

import logging
from typing import Awaitable, Callable

from branch_pruner.models.plan import PruneSummary
from branch_pruner.output import OutputFormatter

logger = logging.getLogger(__name__)

Phase = Callable[[], Awaitable[PruneSummary]]


async def _run_phase(name: str, phase: Phase, output: OutputFormatter) -> bool:
    try:
        await phase()
    except Exception as e:
        logger.debug("%s cleanup failed", name, exc_info=True)
        output.error(f"\n❌ {name} cleanup failed: {e}")
        return False
    return True


async def prune_all(remote: Phase, local: Phase, output: OutputFormatter) -> int:
    """
    Run remote cleanup, then local cleanup, and report both.

    Local cleanup runs even when remote cleanup failed.

    Args:
        remote: Coroutine function running the remote phase
        local: Coroutine function running the local phase
        output: Output formatter

    Returns:
        Exit code: 1 only when both phases failed
    """
    output.output("🚀 Starting combined branch cleanup...")

    output.section("Phase 1: Remote Branch Cleanup")
    remote_ok = await _run_phase("Remote", remote, output)

    output.section("Phase 2: Local Branch Cleanup")
    local_ok = await _run_phase("Local", local, output)

    output.section("Combined Cleanup Summary")
    output.output(f"Remote cleanup: {'✅ Success' if remote_ok else '❌ Failed'}")
    output.output(f"Local cleanup: {'✅ Success' if local_ok else '❌ Failed'}")

    if not remote_ok and not local_ok:
        output.error("\n❌ Both cleanup operations failed!")
        return 1
    if not remote_ok or not local_ok:
        output.output("")
        output.warning("Cleanup completed with some errors.")
        return 0

    output.output("")
    output.success("All cleanup operations completed successfully!")
    return 0
