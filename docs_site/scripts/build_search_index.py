#!/usr/bin/env python3
"""CLI entrypoint for the documentation search index builder."""
from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

from docs_site.search_indexer import api_docs, config, indexer, pages, renderer
from docs_site.search_indexer.models import Project, ProjectVersion
from docs_site.search_indexer.records import SearchRecord
from docs_site.search_indexer.search_index import SearchIndex, create_client

DEFAULT_ROOT = Path.cwd()


class IndexPaths:
    def __init__(self, pages_dir: Path, index_dir: Path | None = None) -> None:
        self.pages_dir = pages_dir
        self.index_dir = (index_dir or pages_dir / "_index").resolve()
        self.records_path = self.index_dir / "records.jsonl"
        self.scan_report_path = self.index_dir / "scan_report.json"
        self.summary_path = self.index_dir / "SUMMARY.md"


logger = logging.getLogger("docs_site.search_indexer.cli")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def resolve_pages(path: str | None) -> Path:
    resolved = Path(path).expanduser().resolve() if path else DEFAULT_ROOT
    if not resolved.exists():
        raise SystemExit(f"Pages directory not found: {resolved}")
    return resolved


def resolve_paths(args: argparse.Namespace) -> IndexPaths:
    pages_dir = resolve_pages(args.pages)
    index_dir = Path(args.index_dir).expanduser() if args.index_dir else None
    return IndexPaths(pages_dir, index_dir)


def project_from_args(args: argparse.Namespace) -> Project:
    if not args.project_slug:
        raise SystemExit("--project-slug is required")
    return Project(
        slug=args.project_slug,
        docs_slug=args.docs_slug or args.project_slug,
        short_name=args.short_name or args.project_slug,
        repository_name=args.repository_name or args.project_slug,
        code_path=args.code_path,
    )


def version_from_args(args: argparse.Namespace) -> ProjectVersion:
    if not args.version_slug:
        raise SystemExit("--version-slug is required")
    return ProjectVersion(slug=args.version_slug, branch_name=args.branch or args.version_slug)


def open_index(args: argparse.Namespace) -> SearchIndex:
    settings = config.load_settings(
        app_id=args.app_id,
        api_key=args.api_key,
        index_name=args.index_name,
    )
    if not settings.has_credentials:
        raise SystemExit("Search credentials missing. Set SEARCH_APP_ID and SEARCH_API_KEY.")
    return SearchIndex(create_client(settings), settings.index_name)


def command_scan(args: argparse.Namespace) -> None:
    paths = resolve_paths(args)
    project = project_from_args(args)
    version = version_from_args(args)
    logger.info("Scanning %s", paths.pages_dir)
    documents = pages.load_documents(paths.pages_dir, exclude=[paths.index_dir])
    records = indexer.collect_records(
        project,
        version,
        documents,
        workers=config.resolve_workers(args.workers),
    )
    write_jsonl(paths.records_path, [record.to_dict() for record in records])
    write_scan_report(paths, records, len(documents), now_iso())
    logger.info("Wrote %d records to %s", len(records), paths.records_path)


def command_init(args: argparse.Namespace) -> None:
    index = open_index(args)
    with index.client:
        index.init_index()
    logger.info("Index %s initialized", index.index_name)


def command_upload(args: argparse.Namespace) -> None:
    paths = resolve_paths(args)
    if not paths.records_path.exists():
        raise SystemExit("No records found. Run 'scan' first.")
    records = [SearchRecord.from_dict(item) for item in read_jsonl(paths.records_path)]
    index = open_index(args)
    with index.client:
        index.init_index()
        index.add_records(records)
    logger.info("Uploaded %d records to %s", len(records), index.index_name)


def command_render(args: argparse.Namespace) -> None:
    paths = resolve_paths(args)
    if not paths.records_path.exists():
        raise SystemExit("No records found. Run 'scan' first.")
    records = [SearchRecord.from_dict(item) for item in read_jsonl(paths.records_path)]
    content = renderer.render_summary(records, paths.summary_path)
    logger.info("Summary written to %s (%d characters)", paths.summary_path, len(content))


def command_api_docs(args: argparse.Namespace) -> None:
    project = project_from_args(args)
    version = version_from_args(args)
    builder = api_docs.ApiDocsBuilder(
        Path(args.projects_path).expanduser().resolve(),
        Path(args.source_path).expanduser().resolve(),
        organization=args.organization,
    )
    builder.build_api_docs(project, version)
    logger.info("API docs built for %s %s", project.slug, version.slug)


def write_jsonl(path: Path, items: Iterable[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        for item in items:
            fh.write(json.dumps(item, ensure_ascii=False))
            fh.write("\n")


def read_jsonl(path: Path) -> Iterable[dict[str, Any]]:
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            if line.strip():
                yield cast(dict[str, Any], json.loads(line))


def write_scan_report(
    paths: IndexPaths, records: list[SearchRecord], page_count: int, timestamp: str
) -> None:
    per_page: dict[str, int] = {}
    for record in records:
        page = renderer.page_of(record)
        per_page[page] = per_page.get(page, 0) + 1
    report = {
        "timestamp": timestamp,
        "pages_dir": str(paths.pages_dir),
        "pages": per_page,
        "counts": {
            "pages": page_count,
            "records": len(records),
        },
    }
    paths.scan_report_path.parent.mkdir(parents=True, exist_ok=True)
    with paths.scan_report_path.open("w", encoding="utf-8") as fh:
        json.dump(report, fh, indent=2)


def add_identity_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--project-slug", help="Project slug, used as a record tag")
    sub.add_argument("--docs-slug", help="Docs slug used in record URLs (defaults to project slug)")
    sub.add_argument("--short-name", help="Project display name")
    sub.add_argument("--repository-name", help="Repository name (defaults to project slug)")
    sub.add_argument("--code-path", default="/lib", help="Source path inside the repository")
    sub.add_argument("--version-slug", help="Version slug, e.g. 2.7")
    sub.add_argument("--branch", help="Branch name (defaults to the version slug)")


def add_index_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--app-id", help="Search application id (overrides SEARCH_APP_ID)")
    sub.add_argument("--api-key", help="Search admin API key (overrides SEARCH_API_KEY)")
    sub.add_argument("--index-name", help="Index name (overrides SEARCH_INDEX_NAME)")


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(description="Build documentation search indexes")
    parser_obj.add_argument("--pages", help="Rendered pages directory (defaults to cwd)")
    parser_obj.add_argument("--index-dir", help="Output directory for records and reports")
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser_obj.add_subparsers(dest="command")

    scan_parser = subparsers.add_parser("scan", help="Build search records from pages")
    add_identity_arguments(scan_parser)
    scan_parser.add_argument(
        "--workers",
        type=int,
        help="Pages built in parallel (overrides SEARCH_INDEX_WORKERS)",
    )
    scan_parser.set_defaults(func=command_scan)

    init_parser = subparsers.add_parser("init", help="Configure and clear the search index")
    add_index_arguments(init_parser)
    init_parser.set_defaults(func=command_init)

    upload_parser = subparsers.add_parser("upload", help="Replace the index with scanned records")
    add_index_arguments(upload_parser)
    upload_parser.set_defaults(func=command_upload)

    render_parser = subparsers.add_parser("render", help="Render Markdown summary")
    render_parser.set_defaults(func=command_render)

    api_parser = subparsers.add_parser("api-docs", help="Run the API docs generator")
    add_identity_arguments(api_parser)
    api_parser.add_argument("--projects-path", required=True, help="Directory of checkouts")
    api_parser.add_argument("--source-path", required=True, help="Site source directory")
    api_parser.add_argument("--organization", default="doctrine", help="Remote repository owner")
    api_parser.set_defaults(func=command_api_docs)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
