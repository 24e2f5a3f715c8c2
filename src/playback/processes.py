"""psutil helpers for owning, terminating and finding player processes."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Collection, Iterable, Optional

import psutil


def is_alive(process: psutil.Process) -> bool:
    """True while the process runs; zombies count as gone."""
    try:
        return process.is_running() and process.status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False


def descendants(process: psutil.Process) -> list[psutil.Process]:
    """Return every descendant, innermost first."""
    try:
        children = process.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return []
    return list(reversed(children))


def tree_innermost_first(roots: Iterable[psutil.Process]) -> list[psutil.Process]:
    """Flatten process trees into one list with children ahead of parents."""
    ordered: list[psutil.Process] = []
    seen: set[int] = set()
    for root in roots:
        for process in [*descendants(root), root]:
            if process.pid in seen:
                continue
            seen.add(process.pid)
            ordered.append(process)
    return ordered


def terminate_processes(
    processes: Iterable[psutil.Process],
    *,
    grace_period_seconds: float = 0.5,
    attempts: int = 5,
    logger: Optional[logging.Logger] = None,
) -> list[psutil.Process]:
    """Send SIGTERM, wait for the grace period, then SIGKILL any survivor.

    Processes that are already gone are skipped silently. Returns the
    processes that had to be killed.
    """
    logger = logger or logging.getLogger("playback")
    pending: list[psutil.Process] = []
    for process in processes:
        try:
            process.terminate()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied as error:
            logger.warning("Cannot terminate pid %s: %s", process.pid, error)
            continue
        pending.append(process)

    interval = grace_period_seconds / max(1, attempts)
    for _ in range(max(1, attempts)):
        if not pending:
            return []
        _, pending = psutil.wait_procs(pending, timeout=interval)
        pending = [process for process in pending if is_alive(process)]

    if not pending:
        return []

    for process in pending:
        logger.debug("pid %s ignored SIGTERM, killing", process.pid)
        try:
            process.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied as error:
            logger.warning("Cannot kill pid %s: %s", process.pid, error)
    psutil.wait_procs(pending, timeout=max(interval, 0.1))
    return pending


def kill_processes(
    processes: Iterable[psutil.Process],
    *,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Unconditionally kill processes; returns how many signals were delivered."""
    logger = logger or logging.getLogger("playback")
    killed = []
    for process in processes:
        try:
            process.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied as error:
            logger.warning("Cannot kill pid %s: %s", process.pid, error)
            continue
        killed.append(process)
    if killed:
        psutil.wait_procs(killed, timeout=0.2)
    return len(killed)


def find_player_processes(
    program_names: Collection[str],
    directories: Iterable[Path | str],
    *,
    exclude_pids: Collection[int] = (),
) -> list[psutil.Process]:
    """Find running players whose command line references one of ``directories``."""
    prefixes = tuple(
        os.path.join(os.path.abspath(str(directory)), "")
        for directory in directories
        if str(directory)
    )
    if not prefixes:
        return []

    excluded = {os.getpid(), *exclude_pids}
    matches = []
    for process in psutil.process_iter(["pid", "name", "cmdline"]):
        info = process.info
        if info["pid"] in excluded:
            continue
        cmdline = info.get("cmdline") or []
        if not cmdline:
            continue
        names = {info.get("name") or "", os.path.basename(cmdline[0])}
        if not names.intersection(program_names):
            continue
        if any(_references(arg, prefixes) for arg in cmdline[1:]):
            matches.append(process)
    return matches


def _references(argument: str, prefixes: tuple[str, ...]) -> bool:
    if not argument or not os.path.isabs(argument):
        return False
    return os.path.abspath(argument).startswith(prefixes)
