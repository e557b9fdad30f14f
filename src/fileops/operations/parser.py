"""Recover file operations from free-form model responses.

The parser runs an ordered list of independent extraction strategies. The
first strategy tier that yields at least one operation wins; results from
different tiers are never merged. Every strategy is a pure function of the
response text and the (immutable) parser configuration, so parsing the same
text twice yields the same operations.

Strategy order:
    1. schema       - structured ``{"operations": [...]}`` JSON payload
    2. canonical    - ``**FILE OPERATION: CREATE**`` + ``Path:`` + fenced block
    3. directive    - "create/edit/delete <path>" phrasing
    4. heading      - markdown heading naming a file, followed by a block
    5. inline_code  - inline code span naming a file, followed by a block
    6. save_phrase  - "save/write ... as/to <path>" followed by a block
    7. loose        - creation verb and filename near a block (can be disabled)

Candidate paths that are unsafe or lack an extension are dropped silently.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError

from fileops.config.schema import ParserConfig
from fileops.operations.paths import accept_candidate_path, path_issues
from fileops.operations.schema import FileOperation, OperationKind, OperationsPayload

logger = logging.getLogger(__name__)

DEFAULT_PARSER_CONFIG = ParserConfig()

# ----------------------------------------------------------------------------
# Patterns
# ----------------------------------------------------------------------------

_FENCE_RE = re.compile(
    r"^[ \t]*(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^\n]*)\n"
    r"(?P<body>.*?)"
    r"(?:^[ \t]*(?P=fence)[ \t]*$|\Z)",
    re.MULTILINE | re.DOTALL,
)

# Quoted or bare path token; ".." and leading "/" are captured so they can be rejected
_PATH_TOKEN = r"""(?P<quote>[`'"]?)(?P<path>[\w@+~.\-/\\]+\.[A-Za-z0-9_+\-]+)(?P=quote)"""

# Max characters between a directive verb and the filename it refers to
_DIRECTIVE_REACH = 80

_CREATE_VERBS = r"create|add|new|build|generate"
_EDIT_VERBS = r"edit|update|modify"
_DELETE_VERBS = r"delete|remove"

_CANONICAL_HEADER_RE = re.compile(
    r"^[ \t]*\*\*[ \t]*(?:FILE[ \t]+OPERATION[ \t]*:[ \t]*)?(?P<kind>CREATE|EDIT|DELETE)"
    r"[ \t]*:?[ \t]*\*\*[ \t]*:?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_CANONICAL_PATH_RE = re.compile(
    r"^[ \t]*(?:\*\*)?Path(?:\*\*)?[ \t]*:[ \t]*(?:\*\*)?(?P<path>[^\n]+?)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

_CREATE_DIRECTIVE_RE = re.compile(
    rf"\b(?:{_CREATE_VERBS})\b[^\n]{{0,{_DIRECTIVE_REACH}}}?{_PATH_TOKEN}", re.IGNORECASE
)
_EDIT_DIRECTIVE_RE = re.compile(
    rf"\b(?:{_EDIT_VERBS})\b[^\n]{{0,{_DIRECTIVE_REACH}}}?{_PATH_TOKEN}", re.IGNORECASE
)
_DELETE_DIRECTIVE_RE = re.compile(
    rf"\b(?:{_DELETE_VERBS})\b[ \t]+(?:the[ \t]+)?(?:file[ \t]+)?{_PATH_TOKEN}",
    re.IGNORECASE,
)

_HEADING_RE = re.compile(r"^[ \t]{0,3}#{1,6}[ \t]+(?P<text>[^\n]+?)[ \t#]*$", re.MULTILINE)
_INLINE_CODE_RE = re.compile(r"(?<!`)`(?P<code>[^`\n]+)`(?!`)")
_SAVE_PHRASE_RE = re.compile(
    rf"\b(?:save|write)\b[^\n]{{0,80}}?\b(?:as|to)[ \t]+{_PATH_TOKEN}", re.IGNORECASE
)
_LOOSE_VERB_RE = re.compile(rf"\b(?:{_CREATE_VERBS})\b", re.IGNORECASE)
_LOOSE_TOKEN_RE = re.compile(_PATH_TOKEN)

_COMMENT_LINE_RE = re.compile(
    r"^[ \t]*(?:<!--|/\*|//|#|--|;)[ \t]*(?:file(?:name)?[ \t]*:[ \t]*)?"
    r"(?P<path>[^\s]+?)[ \t]*(?:-->|\*/)?[ \t]*$",
    re.IGNORECASE,
)
_FENCE_LINE_RE = re.compile(r"^[ \t]*(?:`{3,}|~{3,})[^\n]*$")

# ----------------------------------------------------------------------------
# Fenced blocks and content cleanup
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class Fence:
    """A fenced code block located in the response text."""

    start: int
    end: int
    info: str
    body: str


@dataclass(frozen=True)
class _Match:
    start: int
    kind: OperationKind
    path: str
    fence: Fence | None


def find_fences(text: str) -> list[Fence]:
    """Locate fenced code blocks in document order."""
    return [
        Fence(start=m.start(), end=m.end(), info=m.group("info").strip(), body=m.group("body"))
        for m in _FENCE_RE.finditer(text)
    ]


def _inside_fence(pos: int, fences: list[Fence]) -> bool:
    return any(fence.start <= pos < fence.end for fence in fences)


def _next_fence(fences: list[Fence], pos: int, limit: int | None = None) -> Fence | None:
    """First fence starting at or after pos, optionally within limit characters."""
    for fence in fences:
        if fence.start >= pos:
            if limit is not None and fence.start - pos > limit:
                return None
            return fence
    return None


def _names_file(line: str, path: str) -> bool:
    m = _COMMENT_LINE_RE.match(line)
    if not m:
        return False
    named = m.group("path").strip("`'\"")
    while named.startswith("./"):
        named = named[2:]
    return named == path or named == path.rsplit("/", 1)[-1]


def clean_content(body: str, path: str) -> str:
    """Strip fence delimiters, a filename comment and surrounding blank lines.

    Non-empty content always ends with a single newline.

    Example:
        >>> clean_content("\\n# app.py\\nprint('hi')\\n\\n", "app.py")
        "print('hi')\\n"
    """
    lines = body.replace("\r\n", "\n").split("\n")

    def trim() -> None:
        while lines and (not lines[0].strip() or _FENCE_LINE_RE.match(lines[0])):
            lines.pop(0)
        while lines and (not lines[-1].strip() or _FENCE_LINE_RE.match(lines[-1])):
            lines.pop()

    trim()
    if lines and _names_file(lines[0], path):
        lines.pop(0)
        trim()
    return "\n".join(lines) + "\n" if lines else ""


def _leading_path(value: str) -> str:
    """Path part of a ``Path:`` value: the quoted span, else the first word."""
    value = value.strip().strip("*").strip()
    if value and value[0] in "`'\"":
        closing = value.find(value[0], 1)
        if closing > 0:
            return value[1:closing]
    return value.split()[0] if value.split() else ""


def _extension_recognized(path: str, config: ParserConfig) -> bool:
    ext = path.rsplit("/", 1)[-1].rpartition(".")[2].lower()
    return ext in config.extensions


def _finalize(matches: list[_Match]) -> list[FileOperation]:
    """Order matches by position and turn them into operations.

    A fenced block is claimed by at most one operation, and a (kind, path)
    pair appears at most once.
    """
    operations: list[FileOperation] = []
    claimed: set[int] = set()
    seen: set[tuple[OperationKind, str]] = set()

    for match in sorted(matches, key=lambda m: m.start):
        key = (match.kind, match.path)
        if key in seen:
            continue
        if match.kind is OperationKind.DELETE:
            operations.append(FileOperation(kind=match.kind, path=match.path))
        else:
            if match.fence is None:
                content = ""
            elif match.fence.start in claimed:
                continue
            else:
                claimed.add(match.fence.start)
                content = clean_content(match.fence.body, match.path)
            operations.append(FileOperation(kind=match.kind, path=match.path, content=content))
        seen.add(key)

    return operations


# ----------------------------------------------------------------------------
# Strategies
# ----------------------------------------------------------------------------


def extract_schema_operations(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """Decode a structured ``{"operations": [...]}`` payload.

    Only runs when the trimmed text starts with ``{``. Operations keep their
    encoded order. Entries with unsafe paths are dropped; create/edit entries
    missing content are kept so that validation rejects the batch.
    """
    stripped = text.strip()
    if not stripped.startswith("{"):
        return []
    try:
        payload = OperationsPayload.model_validate_json(stripped)
    except ValidationError as e:
        logger.debug(f"JSON response is not an operations payload ({e.error_count()} errors)")
        return []

    operations: list[FileOperation] = []
    for entry in payload.operations:
        if path_issues(entry.path):
            logger.debug(f"Dropped structured operation with unsafe path: {entry.path!r}")
            continue
        operations.append(entry.to_operation())
    return operations


def extract_canonical_blocks(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """Parse ``**FILE OPERATION: KIND**`` / ``Path:`` / fenced block sections.

    A create without a block creates an empty file; an edit without a block
    is dropped since it carries no content.
    """
    headers = list(_CANONICAL_HEADER_RE.finditer(text))
    if not headers:
        return []
    fences = find_fences(text)
    matches: list[_Match] = []

    for index, header in enumerate(headers):
        if _inside_fence(header.start(), fences):
            continue
        section_end = headers[index + 1].start() if index + 1 < len(headers) else len(text)
        path_match = _CANONICAL_PATH_RE.search(text, header.end(), section_end)
        if path_match is None:
            continue
        path = accept_candidate_path(_leading_path(path_match.group("path")))
        if path is None:
            continue

        kind = OperationKind(header.group("kind").lower())
        fence = _next_fence(fences, path_match.end())
        if fence is not None and fence.start >= section_end:
            fence = None
        if kind is OperationKind.EDIT and fence is None:
            logger.debug(f"Dropped canonical edit without content block: {path}")
            continue
        matches.append(_Match(start=header.start(), kind=kind, path=path, fence=fence))

    return _finalize(matches)


def _directive_path(text: str, m: re.Match[str], config: ParserConfig) -> tuple[str, int] | None:
    """First recognized filename a directive match refers to, and where it ends.

    Prose between the verb and the filename may itself look like a path
    ("e.g.", "version 1.2"). Such tokens are skipped and the rest of the line,
    up to the directive reach, is searched for a filename with a recognized
    extension.
    """
    path = accept_candidate_path(m.group("path"))
    if path is not None and _extension_recognized(path, config):
        return path, m.end()

    line_end = text.find("\n", m.end())
    limit = min(len(text) if line_end < 0 else line_end, m.end() + _DIRECTIVE_REACH)
    for token in _LOOSE_TOKEN_RE.finditer(text, m.end(), limit):
        path = accept_candidate_path(token.group("path"))
        if path is not None and _extension_recognized(path, config):
            return path, token.end()
    return None


def _scan_directive(
    text: str,
    pattern: re.Pattern[str],
    kind: OperationKind,
    fences: list[Fence],
    config: ParserConfig,
) -> list[_Match]:
    matches: list[_Match] = []
    for m in pattern.finditer(text):
        if _inside_fence(m.start(), fences):
            continue
        if kind is OperationKind.DELETE:
            path = accept_candidate_path(m.group("path"))
            if path is not None and _extension_recognized(path, config):
                matches.append(_Match(start=m.start(), kind=kind, path=path, fence=None))
            continue
        found = _directive_path(text, m, config)
        if found is None:
            continue
        path, end = found
        fence = _next_fence(fences, end, config.block_window)
        if fence is not None:
            matches.append(_Match(start=m.start(), kind=kind, path=path, fence=fence))
    return matches


def extract_create_directives(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """Creation verbs followed by a path and a fenced block."""
    fences = find_fences(text)
    matches = _scan_directive(text, _CREATE_DIRECTIVE_RE, OperationKind.CREATE, fences, config)
    return _finalize(matches)


def extract_edit_directives(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """Edit verbs followed by a path and a fenced block."""
    fences = find_fences(text)
    matches = _scan_directive(text, _EDIT_DIRECTIVE_RE, OperationKind.EDIT, fences, config)
    return _finalize(matches)


def extract_delete_directives(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """Deletion verbs followed directly by a path; no block required."""
    fences = find_fences(text)
    matches = _scan_directive(text, _DELETE_DIRECTIVE_RE, OperationKind.DELETE, fences, config)
    return _finalize(matches)


def extract_directive_operations(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """Create, edit and delete directive scanners combined, in text order."""
    fences = find_fences(text)
    matches = (
        _scan_directive(text, _CREATE_DIRECTIVE_RE, OperationKind.CREATE, fences, config)
        + _scan_directive(text, _EDIT_DIRECTIVE_RE, OperationKind.EDIT, fences, config)
        + _scan_directive(text, _DELETE_DIRECTIVE_RE, OperationKind.DELETE, fences, config)
    )
    return _finalize(matches)


def extract_heading_operations(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """A heading ending in a filename, immediately followed by a block, is a create."""
    fences = find_fences(text)
    matches: list[_Match] = []
    for m in _HEADING_RE.finditer(text):
        if _inside_fence(m.start(), fences):
            continue
        words = m.group("text").split()
        if not words:
            continue
        path = accept_candidate_path(words[-1])
        if path is None or not _extension_recognized(path, config):
            continue
        fence = _next_fence(fences, m.end())
        if fence is None or text[m.end() : fence.start].strip():
            continue
        matches.append(_Match(start=m.start(), kind=OperationKind.CREATE, path=path, fence=fence))
    return _finalize(matches)


def extract_inline_code_operations(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """An inline code span naming a file, shortly followed by a block, is a create."""
    fences = find_fences(text)
    matches: list[_Match] = []
    for m in _INLINE_CODE_RE.finditer(text):
        if _inside_fence(m.start(), fences):
            continue
        path = accept_candidate_path(m.group("code"))
        if path is None or " " in path or not _extension_recognized(path, config):
            continue
        fence = _next_fence(fences, m.end(), config.block_window)
        if fence is None:
            continue
        matches.append(_Match(start=m.start(), kind=OperationKind.CREATE, path=path, fence=fence))
    return _finalize(matches)


def extract_save_phrase_operations(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """"Save/write ... as/to <path>" followed by a block is a create."""
    fences = find_fences(text)
    matches: list[_Match] = []
    for m in _SAVE_PHRASE_RE.finditer(text):
        if _inside_fence(m.start(), fences):
            continue
        path = accept_candidate_path(m.group("path"))
        if path is None or not _extension_recognized(path, config):
            continue
        fence = _next_fence(fences, m.end(), config.block_window)
        if fence is None:
            continue
        matches.append(_Match(start=m.start(), kind=OperationKind.CREATE, path=path, fence=fence))
    return _finalize(matches)


def extract_loose_operations(
    text: str, config: ParserConfig = DEFAULT_PARSER_CONFIG
) -> list[FileOperation]:
    """Any line with a creation verb and a known filename near a block is a create.

    This is the most permissive strategy and may produce false positives;
    ``ParserConfig.loose_fallback`` switches it off.
    """
    fences = find_fences(text)
    matches: list[_Match] = []
    offset = 0
    for line in text.splitlines(keepends=True):
        line_start = offset
        offset += len(line)
        if _inside_fence(line_start, fences) or not _LOOSE_VERB_RE.search(line):
            continue
        for token in _LOOSE_TOKEN_RE.finditer(line):
            path = accept_candidate_path(token.group("path"))
            if path is None or not _extension_recognized(path, config):
                continue
            fence = _next_fence(fences, offset, config.loose_fallback_window)
            if fence is not None:
                matches.append(
                    _Match(start=line_start, kind=OperationKind.CREATE, path=path, fence=fence)
                )
            break
    return _finalize(matches)


Strategy = Callable[[str, ParserConfig], list[FileOperation]]

STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("schema", extract_schema_operations),
    ("canonical", extract_canonical_blocks),
    ("directive", extract_directive_operations),
    ("heading", extract_heading_operations),
    ("inline_code", extract_inline_code_operations),
    ("save_phrase", extract_save_phrase_operations),
    ("loose", extract_loose_operations),
)


@dataclass(frozen=True)
class ParseResult:
    """Operations recovered from a response and the strategy that found them."""

    operations: tuple[FileOperation, ...]
    strategy: str | None

    def __bool__(self) -> bool:
        return bool(self.operations)


def parse_response(text: str, config: ParserConfig | None = None) -> ParseResult:
    """Run the strategies in order and stop at the first that finds anything.

    Never raises: a strategy that fails unexpectedly is logged and skipped.
    """
    config = config or DEFAULT_PARSER_CONFIG
    if not isinstance(text, str) or not text.strip():
        return ParseResult(operations=(), strategy=None)

    for name, strategy in STRATEGIES:
        if name == "loose" and not config.loose_fallback:
            continue
        try:
            operations = strategy(text, config)
        except Exception as e:
            logger.warning(f"Parser strategy '{name}' failed: {e}")
            continue
        if operations:
            logger.debug(f"Parser strategy '{name}' recovered {len(operations)} operations")
            return ParseResult(operations=tuple(operations), strategy=name)

    logger.debug("No file operations found in response")
    return ParseResult(operations=(), strategy=None)


def parse_operations(text: str, config: ParserConfig | None = None) -> list[FileOperation]:
    """Recover the list of file operations from a model response.

    Args:
        text: Raw response text
        config: Parser configuration (defaults apply when omitted)

    Returns:
        Operations in text order; empty when nothing is recoverable

    Example:
        >>> text = "**FILE OPERATION: DELETE**\\nPath: old.txt\\n"
        >>> parse_operations(text)
        [FileOperation(kind=<OperationKind.DELETE: 'delete'>, path='old.txt', content=None)]
    """
    return list(parse_response(text, config).operations)
