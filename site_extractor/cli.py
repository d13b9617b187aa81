import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional

from .bundle import archive_filename, build_zip
from .config import Settings, load_config_file
from .errors import InvalidURLError
from .models import COMPLETED
from .pipeline import Extractor

CONFIG_GROUPS = ("general", "http", "limits", "store")

# -------------------- CLI --------------------


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Extract a page and the assets it references into a ZIP bundle.",
        add_help=True,
    )
    p.add_argument("--config", type=str, help="path to config.toml|.yaml", default=None)

    p.add_argument("url", help="http(s) URL")
    p.add_argument(
        "-o", "--output", type=str, default=None, help="ZIP path (default: <host>-sources.zip)"
    )
    p.add_argument(
        "--no-payloads", action="store_true", help="do not probe API-like endpoints"
    )
    p.add_argument(
        "--no-source-page", action="store_true", help="do not include index.html"
    )
    p.add_argument(
        "--no-script-literals",
        action="store_true",
        help="do not scan inline scripts for import() and require() targets",
    )
    p.add_argument("--verbose", action="store_true", help="debug logging")
    p.add_argument(
        "--json", type=str, default=None, help="write result metadata (no content) as JSON"
    )

    # http
    p.add_argument(
        "--timeout", type=float, default=15.0, help="page request timeout seconds"
    )
    p.add_argument(
        "--asset-timeout", type=float, default=10.0, help="asset request timeout seconds"
    )
    p.add_argument(
        "--probe-timeout", type=float, default=5.0, help="payload probe timeout seconds"
    )
    p.add_argument("--retries", type=int, default=2, help="retries per request")
    p.add_argument("--user-agent", type=str, default=None, help="User-Agent header")
    p.add_argument(
        "--header",
        action="append",
        default=[],
        help="extra request header 'Name: value'",
    )

    # limits
    p.add_argument("--batch-size", type=int, default=10, help="concurrent asset fetches")
    p.add_argument(
        "--max-bytes", type=int, default=10 * 1024 * 1024, help="max bytes per asset"
    )
    p.add_argument("--max-probes", type=int, default=5, help="max payload probes")

    # store
    p.add_argument(
        "--store",
        type=str,
        choices=["memory", "dbm"],
        default="memory",
        help="result store backend",
    )
    p.add_argument("--store-path", type=str, default=None, help="dbm store file")

    return p


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = build_arg_parser()
    preliminary, _ = parser.parse_known_args(argv)
    if preliminary.config:
        cfg = load_config_file(preliminary.config)
        if isinstance(cfg, dict):
            flat = dict(cfg)
            for g in CONFIG_GROUPS:
                if isinstance(flat.get(g), dict):
                    flat.update(flat.pop(g))
            parser.set_defaults(**{k.replace("-", "_"): v for k, v in flat.items()})
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        page_timeout=max(0.1, args.timeout),
        asset_timeout=max(0.1, min(args.asset_timeout, args.timeout)),
        probe_timeout=max(0.1, args.probe_timeout),
        batch_size=max(1, args.batch_size),
        max_asset_bytes=max(1024, args.max_bytes),
        retries=max(0, args.retries),
        max_probes=max(0, args.max_probes),
        scan_script_literals=not args.no_script_literals,
        max_extractions=1,
        store_backend=args.store,
        store_path=args.store_path,
        user_agent=args.user_agent,
        extra_headers=list(args.header or []),
    )


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    settings = settings_from_args(args)

    with Extractor(settings) as extractor:
        try:
            started = extractor.start_extraction(
                args.url,
                include_payloads=not args.no_payloads,
                include_source_page=not args.no_source_page,
            )
        except InvalidURLError as e:
            print(f"{e}. Use http:// or https://")
            sys.exit(1)
        result = extractor.wait(started.id)

    if args.json:
        Path(args.json).write_text(
            json.dumps(result.to_dict(include_content=False), indent=2), encoding="utf-8"
        )
    if result.status != COMPLETED:
        logging.error("extraction failed: %s", result.error)
        sys.exit(1)

    by_type = Counter(f.type for f in result.files)
    for kind, n in sorted(by_type.items()):
        logging.info("%-8s %d", kind, n)
    out = Path(args.output or archive_filename(result))
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(build_zip(result))
    print(f"{result.total_files} files, {result.total_size} bytes")
    print(f"Saved to: {out}")


if __name__ == "__main__":
    main()
