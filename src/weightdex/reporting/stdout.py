"""Human-readable stdout reporter for scan summaries."""

from __future__ import annotations

from collections import Counter

from weightdex.constants.branding import ASCII_LOGO_LINES, SCAN_SUMMARY_TITLE
from weightdex.constants.reporting import ANSI_GREEN, ANSI_RED, ANSI_RESET, ANSI_YELLOW, MAX_ERROR_ROWS
from weightdex.model import ScanSummary


def _colorize(text: str, color: str) -> str:
    return f"{color}{text}{ANSI_RESET}"


class StdoutReporter:
    """Formats a ``ScanSummary`` as terminal output."""

    def __init__(self, summary: ScanSummary, *, color: bool = True, verbose: bool = False) -> None:
        self._summary = summary
        self._color = color
        self._verbose = verbose

    def render(self) -> str:
        """Render the full stdout report as a single string."""
        sections = [self._render_header(), self._render_errors_table(), self._render_warnings()]
        return "\n".join(section for section in sections if section)

    def _render_header(self) -> str:
        s = self._summary
        sep = "  " + "─" * 38

        errors_str = str(s.errors)
        if self._color:
            errors_str = _colorize(errors_str, ANSI_RED if s.errors else ANSI_GREEN)

        lines = [
            "",
            f"  {ASCII_LOGO_LINES[0]}",
            f"  {ASCII_LOGO_LINES[1]}",
            f"  {SCAN_SUMMARY_TITLE}",
            sep,
            "",
            f"  Files       {s.total_candidates} found / {s.processed} processed / {s.skipped} unchanged",
            f"  Errors      {errors_str}{self._format_error_kinds()}",
            f"  Metadata    {s.metadata_extracted} preview(s) indexed",
        ]
        if s.pruned:
            lines.append(f"  Pruned      {s.pruned} stale cache entr{'y' if s.pruned == 1 else 'ies'}")
        lines.append(f"  Duration    {s.duration_seconds:.2f}s")
        if s.cancelled:
            status = _colorize("cancelled", ANSI_YELLOW) if self._color else "cancelled"
            lines.append(f"  Status      {status}")
        lines.append("")
        return "\n".join(lines)

    def _format_error_kinds(self) -> str:
        if not self._summary.error_details:
            return ""
        counts = Counter(detail.kind for detail in self._summary.error_details)
        rendered = ", ".join(f"{kind}={count}" for kind, count in sorted(counts.items()))
        return f" ({rendered})"

    def _render_errors_table(self) -> str:
        details = self._summary.error_details
        if not details:
            return ""
        shown = details if self._verbose else details[:MAX_ERROR_ROWS]

        w_kind = max(len("Kind"), *(len(detail.kind) for detail in shown))
        w_path = min(60, max(len("Path"), *(len(detail.path) for detail in shown)))

        def _hline(left: str, mid: str, right: str) -> str:
            return f"  {left}{'─' * (w_kind + 2)}{mid}{'─' * (w_path + 2)}{right}"

        lines = [
            "  Errors",
            _hline("┌", "┬", "┐"),
            f"  │ {'Kind':<{w_kind}} │ {'Path':<{w_path}} │",
            _hline("├", "┼", "┤"),
        ]
        for detail in shown:
            lines.append(f"  │ {detail.kind:<{w_kind}} │ {_truncate_left(detail.path, w_path):<{w_path}} │")
            if self._verbose:
                lines.append(f"  │ {'':<{w_kind}} │   {detail.message}")
        lines.append(_hline("└", "┴", "┘"))
        hidden = len(details) - len(shown)
        if hidden:
            lines.append(f"  ... {hidden} more (use --verbose to list all)")
        return "\n".join(lines)

    def _render_warnings(self) -> str:
        if not self._summary.warnings:
            return ""
        lines = ["  Warnings"]
        lines.extend(f"  - {warning}" for warning in self._summary.warnings)
        return "\n".join(lines)


def _truncate_left(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return "…" + text[-(width - 1) :]
