import html
from typing import TextIO

from ..core.repository import Repository

TITLE = "# My Nestable Notes"


class MarkdownExporter:
    """
    Write every note's current revision into one Markdown document: a table
    of contents followed by each body under an anchored header, ordered by
    note id.
    """

    def __init__(self, repo: Repository, head_length: int = 80):
        self.repo = repo
        self.head_length = head_length

    def export(self, out: TextIO) -> int:
        revs = sorted(self.repo.list_notes(), key=lambda r: r.note_id)
        headers = {r.note_id: html.escape(self.repo.head(r, self.head_length)) for r in revs}

        out.write(f"{TITLE}\n\n**Table of Contents**\n\n")
        for rev in revs:
            out.write(f'- <a href="#{rev.note_id}">[{rev.note_id}] {headers[rev.note_id]}</a>\n')

        for rev in revs:
            body = self.repo.body(rev).decode("utf-8", errors="replace")
            out.write(f'\n### <a name="{rev.note_id}">[{rev.note_id}] {headers[rev.note_id]}</a>\n\n')
            out.write(body)
            if not body.endswith("\n"):
                out.write("\n")

        return len(revs)
