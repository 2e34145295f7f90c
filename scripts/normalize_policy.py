from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

from src.editor.normalizer import normalize
from src.editor.serialization import document_to_record, serialize_sections
from src.models.policy import PolicyVariant
from src.server.logging_config import configure_logging
from src.server.policies.store import PolicyStore


def parse_args() -> argparse.Namespace:
    if Path(".env").exists():
        load_dotenv(".env", override=False)
    parser = argparse.ArgumentParser(description="Normalize a generated course AI policy into an editable tree.")
    parser.add_argument("input", type=Path, help="Generation result file (.json, .yaml or .yml)")
    parser.add_argument(
        "--variant",
        choices=[variant.value for variant in PolicyVariant],
        default=PolicyVariant.GENERATED.value,
        help="Normalization rules and wire schema to use (default: generated)",
    )
    parser.add_argument("--policy-id", default=None, help="Identifier for the policy (default: random UUID)")
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Optional SQLite database to upsert the normalized policy into",
    )
    parser.add_argument("--output", type=Path, default=None, help="Write the record here instead of stdout")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args()


def load_generation_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Generation result not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported generation file format '{path.suffix}' for {path}")
    if not isinstance(data, dict):
        raise ValueError(f"Generation file {path} must contain a mapping at the top level")
    return data


def main() -> None:
    args = parse_args()
    configure_logging(args.log_level.upper())

    variant = PolicyVariant(args.variant)
    document = normalize(load_generation_file(args.input), policy_id=args.policy_id, variant=variant)

    if args.store:
        store = PolicyStore(args.store)
        store.upsert_policy(
            policy_id=document.id,
            heading=document.heading,
            sections=serialize_sections(document.sections, document.variant),
            variant=document.variant,
            created_at=document.created_at,
        )

    rendered = json.dumps(document_to_record(document), indent=2, ensure_ascii=False)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(rendered + "\n", encoding="utf-8")
    else:
        print(rendered)


if __name__ == "__main__":
    main()
