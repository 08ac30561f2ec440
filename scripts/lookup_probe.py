#!/usr/bin/env python3
"""Run one vehicle lookup against a live backend.

Prints the reconciled fields as the store sees them and the health of
every source, the same way the draft editor would show them.

Usage
-----
::

    export AUTODRAFT_BASE_URL="https://api.example.com"
    export AUTODRAFT_API_TOKEN="..."
    python scripts/lookup_probe.py AB-123-CD

Options::

    --type plate|vin    Identifier type (default: detected from the input)
    --verbose / -v      Enable debug logging
    --trace             Log redacted request/response bodies
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from autodraft import (  # noqa: E402
    AutoFillOrchestrator,
    DraftClient,
    DraftConfig,
    FieldStateStore,
    IdentifierType,
    ResyncCoordinator,
    detect_format,
    is_valid_identifier,
)


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


async def run() -> int:
    parser = argparse.ArgumentParser(description="Run one vehicle lookup and print the reconciled draft")
    parser.add_argument("identifier", help="Plate (AB-123-CD) or VIN")
    parser.add_argument("--type", choices=[t.value for t in IdentifierType], help="Identifier type")
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument("--trace", action="store_true", help="Log redacted request/response bodies")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose or args.trace else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    identifier_type = args.type or detect_format(args.identifier).identifier_type
    if identifier_type is None:
        print(f"Cannot tell whether {args.identifier!r} is a plate or a VIN; pass --type.")
        return 2
    if not is_valid_identifier(args.identifier, identifier_type):
        print(f"{args.identifier!r} is not a complete {identifier_type}.")
        return 2

    cfg = DraftConfig.from_env(api_trace_enabled=True) if args.trace else DraftConfig.from_env()
    store = FieldStateStore()

    async with DraftClient(cfg) as client:
        orchestrator = AutoFillOrchestrator(store, client)
        resync = ResyncCoordinator(orchestrator, store)
        outcome = await orchestrator.lookup(args.identifier, identifier_type)

    print(_section(f"Lookup {orchestrator.last_identifier} ({identifier_type})"))
    print(f"  state: {orchestrator.state}")
    if outcome is not None and outcome.error:
        print(f"  error: {outcome.error} [{outcome.failure}]")

    print(_section("Sources"))
    for source in orchestrator.sources:
        detail = source.error_message or (source.cache_status or "")
        print(f"  {source.label:<10} {source.status:<8} {detail}")

    print(_section("Fields"))
    for name, state in sorted(store.fields.items()):
        provenance = f" <- {state.certified_source}" if state.certified_source else ""
        print(f"  {name:<26} {state.status:<9} {state.value!r}{provenance}")

    banner = resync.banner()
    if banner is not None:
        print(_section("Resync"))
        print(f"  {banner.message}")

    return 0 if outcome is not None and not outcome.error else 1


def main() -> None:
    try:
        sys.exit(asyncio.run(run()))
    except KeyboardInterrupt:
        print("\nDone.")


if __name__ == "__main__":
    main()
