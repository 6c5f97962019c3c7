"""Rendering utilities for the index build summary."""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from .records import RANKS, SearchRecord

RANK_LABELS = {rank: name for name, rank in RANKS.items()}


def page_of(record: SearchRecord) -> str:
    """Strip the version prefix and fragment from a record URL."""
    tail = record.url.split("/en/", 1)[-1]
    page = tail.split("/", 1)[-1] if "/" in tail else tail
    page = page.split("#", 1)[0]
    if page.endswith(".html"):
        page = page[: -len(".html")]
    return page


def render_summary(records: Iterable[SearchRecord], output_path: Path) -> str:
    records = list(records)
    rank_counts: Counter[int] = Counter()
    page_counts: Counter[str] = Counter()
    page_titles: dict[str, str] = {}
    tags: Counter[str] = Counter()
    for record in records:
        rank_counts[record.rank] += 1
        page = page_of(record)
        page_counts[page] += 1
        if record.h1 and page not in page_titles:
            page_titles[page] = record.h1
        for tag in record.tags:
            tags[tag] += 1
    now = datetime.now(UTC).replace(microsecond=0).isoformat()
    lines = ["# Search Index Build", "", f"_Last build: {now}_", ""]
    lines.append(f"**Total records:** {len(records)}")
    lines.append("")
    if rank_counts:
        rank_summary = ", ".join(
            f"{RANK_LABELS.get(rank, str(rank))} ({count})"
            for rank, count in sorted(rank_counts.items())
        )
        lines.append(f"**By rank:** {rank_summary}")
        lines.append("")
    if tags:
        lines.append("**Tags:** " + ", ".join(f"{tag} ({count})" for tag, count in tags.most_common()))
        lines.append("")
    lines.append("## Pages")
    lines.append("")
    lines.append("| Page | Title | Records |")
    lines.append("| --- | --- | --- |")
    for page in sorted(page_counts):
        title = escape_cell(page_titles.get(page, ""))
        lines.append(f"| {escape_cell(page)} | {title} | {page_counts[page]} |")
    lines.append("")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    content = "\n".join(lines)
    output_path.write_text(content, encoding="utf-8")
    return content


def escape_cell(value: str) -> str:
    return value.replace("|", "\\|")
