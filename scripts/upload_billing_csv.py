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
    parser = argparse.ArgumentParser(description="Store a monthly billing CSV and optionally process it.")
    parser.add_argument("--csv", required=True, help="Path to the billing CSV export.")
    parser.add_argument("--month", type=int, required=True, help="Billing month (1-12).")
    parser.add_argument("--year", type=int, required=True, help="Billing year.")
    parser.add_argument("--uploaded-by", required=True, help="Profile id recorded as the uploader.")
    parser.add_argument("--correction-reason", default=None, help="Marks the upload as a correction.")
    parser.add_argument("--process", action="store_true", help="Process the upload after storing it.")
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
    from src.schemas.billing import BillingUploadCreateRequest, ProcessBillingUploadRequest

    configure_logging(os.environ.get("LOG_LEVEL"))
    with open(args.csv, "r", encoding="utf-8-sig") as csv_file:
        csv_text = csv_file.read()

    service = get_billing_service()
    upload = service.create_upload(
        BillingUploadCreateRequest(
            month=args.month,
            year=args.year,
            file_name=os.path.basename(args.csv),
            csv_text=csv_text,
            is_correction=bool(args.correction_reason),
            correction_reason=args.correction_reason,
        ),
        caller_id=args.uploaded_by,
    )
    output = {"upload": upload.model_dump(by_alias=True)}
    if args.process:
        result = service.process_upload(
            ProcessBillingUploadRequest(upload_id=upload.id, month=args.month, year=args.year),
            caller_id=args.uploaded_by,
        )
        output["result"] = result.model_dump(by_alias=True)
    print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    main()
