"""Post source backed by the ``bird`` command-line client for X.

``bird search`` prints posts as loosely formatted blocks::

    @handle (Display Name):
    post body text
    📅 Sat Feb 14 10:00:00 +0000 2026
    🔗 https://x.com/handle/status/1890000000000000000
    ────────────

which :func:`parse_bird_output` turns back into :class:`Post` objects.
"""

from __future__ import annotations

import hashlib
import logging
import re
import subprocess

from narrativeshift.models import Post
from narrativeshift.sources import SourceQueryError

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"^@(\w+)\s*\(([^)]+)\):")
_DATE_MARK = "📅"
_LINK_MARK = "🔗"
# Separator rules, repost markers and reply-tree glyphs carry no body text.
_SKIP_MARKS = ("─", "🔄", "└─")


def _finish(block: dict[str, str]) -> Post | None:
    text = block.get("text", "")
    if not (block.get("author") or text):
        return None
    post_id = block.get("id")
    if not post_id:
        # No permalink: derive a stable ID so repeated fetches still dedupe.
        digest = hashlib.sha1(f"{block.get('author', '')}\n{text}".encode()).hexdigest()
        post_id = f"bird_{digest[:16]}"
    return Post(
        post_id=post_id,
        text=text,
        author=block.get("author", ""),
        created_at=block.get("created_at"),
    )


def parse_bird_output(output: str) -> list[Post]:
    """Parse ``bird search`` text output into posts, in output order."""
    posts: list[Post] = []
    block: dict[str, str] = {}

    for line in output.splitlines():
        stripped = line.strip()
        header = _HEADER_RE.match(stripped)
        if header:
            post = _finish(block)
            if post is not None:
                posts.append(post)
            block = {"author": header.group(1)}
        elif _DATE_MARK in stripped:
            block["created_at"] = stripped.split(_DATE_MARK, 1)[1].strip()
        elif _LINK_MARK in stripped:
            url = stripped.split(_LINK_MARK, 1)[1].strip().rstrip("/")
            block["id"] = url.rsplit("/", 1)[-1] or block.get("id", "")
        elif stripped and not any(mark in stripped for mark in _SKIP_MARKS):
            block["text"] = f"{block['text']} {stripped}" if block.get("text") else stripped

    post = _finish(block)
    if post is not None:
        posts.append(post)
    return posts


class BirdSource:
    """Runs ``bird search`` with cookie credentials for each query."""

    def __init__(
        self,
        auth_token: str,
        ct0: str,
        binary: str = "bird",
        timeout: float = 30,
    ) -> None:
        if not (auth_token and ct0):
            raise ValueError("TWITTER_AUTH_TOKEN and TWITTER_CT0 are both required.")
        self._auth_token = auth_token
        self._ct0 = ct0
        self._binary = binary
        self._timeout = timeout

    def search(self, query: str, limit: int) -> list[Post]:
        cmd = [
            self._binary,
            "--auth-token", self._auth_token,
            "--ct0", self._ct0,
            "search", query,
        ]
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=True,
            )
        except subprocess.TimeoutExpired as exc:
            raise SourceQueryError(f"bird timed out after {self._timeout}s") from exc
        except subprocess.CalledProcessError as exc:
            raise SourceQueryError(
                f"bird exited with {exc.returncode}: {(exc.stderr or '')[:500]}"
            ) from exc
        except OSError as exc:
            raise SourceQueryError(f"could not run {self._binary}: {exc}") from exc

        posts = parse_bird_output(proc.stdout)[: max(limit, 0)]
        logger.info("Fetched %d posts via bird for query: %s", len(posts), query)
        return posts
