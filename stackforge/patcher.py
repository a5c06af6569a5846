"""Conservative find-and-replace for generated source files.

The patcher edits a file written by someone else (an upstream generator), so
it only rewrites code it fully recognises:

1. the exact literal invocation (e.g. ``await app.listen(3000);``), or
2. the same invocation with a single argument of any shape, closed by its
   own ``)`` and followed by ``;``.

The argument list may nest one level of parentheses and may not contain a
``;``.  A call that does not fit that shape (no trailing semicolon, a chained
``.then(...)``, deeper nesting) is ``NOT_FOUND``, never a partial match.
Commas are only counted outside nested parentheses and string literals, so
``getPort('api', 4000)`` is one argument while ``3000, '0.0.0.0'`` or an
options object with several keys is ``AMBIGUOUS`` and left alone.

Neither ``NOT_FOUND`` nor ``AMBIGUOUS`` is an error; the caller decides
whether to warn.  The file is only written when its content actually changes.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from stackforge.errors import PrerequisiteMissing
from stackforge.steps import PatchRule


class PatchOutcome(str, Enum):
    APPLIED = "applied"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


class PatchResult(BaseModel):
    """Outcome of one patch attempt.

    Attributes:
        outcome: What happened.
        path: The file that was inspected.
        snippet: The raw matched invocation (set for ``APPLIED`` and
            ``AMBIGUOUS``), so callers can show it.
        reason: Why a file could not be inspected at all (``NOT_FOUND`` only).
    """

    outcome: PatchOutcome
    path: Path
    snippet: str | None = None
    reason: str | None = None

    @property
    def applied(self) -> bool:
        return self.outcome is PatchOutcome.APPLIED


def _loose_pattern(call: str) -> re.Pattern[str]:
    """``await <call>(<args>);`` where *args* holds no ``;`` and at most one
    level of nested parentheses."""
    return re.compile(
        rf"await\s+{re.escape(call)}\(((?:[^;()]|\([^;()]*\))*)\)\s*;"
    )


def _top_level_commas(args: str) -> int:
    """Count commas in *args* outside nested parentheses and string literals."""
    depth = 0
    quote: str | None = None
    count = 0
    escaped = False
    for char in args:
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in "'\"`":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            count += 1
    return count


class SourcePatcher:
    """Applies ``PatchRule`` rewrites to files on disk."""

    def apply(self, path: str | Path, rule: PatchRule) -> PatchResult:
        """Rewrite the invocation described by *rule* inside *path*.

        A file that is not valid UTF-8 is left untouched and reported as
        ``NOT_FOUND`` with a ``reason``.

        Raises:
            PrerequisiteMissing: If *path* does not exist.
        """
        target = Path(path)
        if not target.is_file():
            raise PrerequisiteMissing(
                target,
                f"{target} not found - the generator that should create it may have failed",
            )

        try:
            original = target.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            return PatchResult(
                outcome=PatchOutcome.NOT_FOUND,
                path=target,
                reason=f"not valid UTF-8 ({exc.reason} at byte {exc.start})",
            )

        updated, result = self.rewrite(original, rule, target)

        if result.applied:
            target.write_bytes(updated.encode("utf-8"))
        return result

    def rewrite(
        self, content: str, rule: PatchRule, path: Path | None = None
    ) -> tuple[str, PatchResult]:
        """Pure version of :meth:`apply` operating on a string.

        Returns:
            ``(new_content, result)``.  ``new_content`` equals *content*
            unless the outcome is ``APPLIED``.
        """
        where = path or Path("<memory>")

        if rule.literal in content:
            updated = content.replace(rule.literal, rule.replacement, 1)
            return self._finish(content, updated, where, rule.literal)

        match = _loose_pattern(rule.call).search(content)
        if match is None:
            return content, PatchResult(outcome=PatchOutcome.NOT_FOUND, path=where)

        snippet = match.group(0)
        if _top_level_commas(match.group(1)):
            return content, PatchResult(
                outcome=PatchOutcome.AMBIGUOUS, path=where, snippet=snippet
            )

        updated = content[: match.start()] + rule.replacement + content[match.end():]
        return self._finish(content, updated, where, snippet)

    @staticmethod
    def _finish(
        original: str, updated: str, path: Path, snippet: str
    ) -> tuple[str, PatchResult]:
        # Already patched: the rewrite is a no-op, nothing to apply.
        if updated == original:
            return original, PatchResult(outcome=PatchOutcome.NOT_FOUND, path=path)
        return updated, PatchResult(
            outcome=PatchOutcome.APPLIED, path=path, snippet=snippet
        )
