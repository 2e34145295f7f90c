from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

from dotenv import load_dotenv

from src.editor.serialization import document_from_record
from src.server.policies.store import PolicyStore


def parse_args() -> argparse.Namespace:
    if Path(".env").exists():
        load_dotenv(".env", override=False)
    parser = argparse.ArgumentParser(description="Print a stored policy tree as an outline or as JSON.")
    parser.add_argument("policy_id", nargs="?", help="Policy identifier; omit to list stored policies")
    parser.add_argument(
        "--db",
        type=Path,
        default=Path(os.getenv("POLICY_DB", "artifacts/policies.db")),
        help="SQLite policy database (default: $POLICY_DB or artifacts/policies.db)",
    )
    parser.add_argument("--json", action="store_true", help="Print the stored record instead of an outline")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    store = PolicyStore(args.db)

    if not args.policy_id:
        for summary in store.list_policies():
            print(f"{summary.id}\t{summary.variant.value}\t{summary.section_count} sections\t{summary.updated_at.isoformat()}")
        return

    stored = store.get_policy(args.policy_id)
    if stored is None:
        raise SystemExit(f"Policy not found: {args.policy_id}")

    if args.json:
        print(json.dumps(stored.to_record(), indent=2, ensure_ascii=False))
        return

    document = document_from_record(stored.id, stored.to_record())
    print(f"{document.id} ({document.variant.value}, updated {document.updated_at.isoformat()})")
    for number, section in enumerate(document.sections):
        print(f"{number}. {section.title} [{section.id}]")
        for subsection in section.subsections:
            print(f"   - {subsection.title} [{subsection.id}]")


if __name__ == "__main__":
    main()
