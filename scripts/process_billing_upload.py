from __future__ import annotations

import argparse
import json
import os
import sys

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Re-run billing reconciliation for a stored upload, replacing its records."
    )
    parser.add_argument("--upload-id", required=True, help="billing_uploads.id to process.")
    parser.add_argument("--month", type=int, required=True, help="Billing month (1-12).")
    parser.add_argument("--year", type=int, required=True, help="Billing year.")
    parser.add_argument(
        "--env-file",
        default=os.path.join(PROJECT_ROOT, ".env"),
        help="Path to .env file.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    load_env_file(os.path.abspath(args.env_file))

    from src.api.dependencies import get_billing_service
    from src.core.logging import configure_logging
    from src.schemas.billing import ProcessBillingUploadRequest

    configure_logging(os.environ.get("LOG_LEVEL"))
    service = get_billing_service()
    result = service.process_upload(
        ProcessBillingUploadRequest(upload_id=args.upload_id, month=args.month, year=args.year)
    )
    print(json.dumps(result.model_dump(by_alias=True), indent=2, default=str))


if __name__ == "__main__":
    main()
