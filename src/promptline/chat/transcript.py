"""The locally rendered conversation.

Entries are only ever appended; indices never change once assigned.
"""

from collections.abc import Iterator

from rich.text import Text

from .models import ConversationEntry, Role

USER_PREFIX = "? "
ASSISTANT_PREFIX = "> "

# Terminal palette colors
PREFIX_STYLE = "color(2)"
PROMPT_STYLE = "color(4)"
ERROR_STYLE = "bold red"


class Transcript:
    """Append-only sequence of conversation entries."""

    def __init__(self) -> None:
        self._entries: list[ConversationEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> ConversationEntry:
        return self._entries[index]

    def __iter__(self) -> Iterator[ConversationEntry]:
        return iter(self._entries)

    def append_entry(
        self,
        role: Role,
        text: str,
        final: bool = False,
        error: bool = False,
    ) -> int:
        """Append an entry and return its index."""
        self._entries.append(ConversationEntry(role=role, text=text, final=final, error=error))
        return len(self._entries) - 1

    def extend_entry(self, index: int, fragment: str) -> None:
        """Append fragment text to the entry at ``index``.

        An index exactly one past the end seeds a new assistant entry with
        the fragment.

        Raises:
            IndexError: If index is negative or further past the end
            ValueError: If the entry is already final
        """
        if index == len(self._entries):
            self.append_entry(Role.ASSISTANT, fragment)
            return
        if not 0 <= index < len(self._entries):
            raise IndexError(f"transcript index {index} out of range (length {len(self._entries)})")

        entry = self._entries[index]
        if entry.final:
            raise ValueError(f"transcript entry {index} is final")
        entry.text += fragment

    def finalize(self, index: int) -> None:
        """Freeze the entry at ``index``, creating an empty reply if needed."""
        if index == len(self._entries):
            self.append_entry(Role.ASSISTANT, "")
        self._entries[index].final = True

    def text_at(self, index: int) -> str:
        """Text of the entry at ``index``, or "" if it does not exist yet."""
        if 0 <= index < len(self._entries):
            return self._entries[index].text
        return ""

    def last_reply(self) -> str | None:
        """Latest assistant reply that is not an error marker."""
        for entry in reversed(self._entries):
            if entry.role is Role.ASSISTANT and not entry.error:
                return entry.text
        return None

    def lines(self) -> list[str]:
        """Plain text of each entry with its role prefix."""
        return [self._prefix(entry) + entry.text for entry in self._entries]

    def render_plain(self) -> str:
        return "\n".join(self.lines())

    def render(self) -> Text:
        """Styled rendering of the whole transcript for the viewport."""
        rendered = Text()
        for i, entry in enumerate(self._entries):
            if i:
                rendered.append("\n")
            rendered.append(self._prefix(entry), style=PREFIX_STYLE)
            if entry.error:
                rendered.append(entry.text, style=ERROR_STYLE)
            elif entry.role is Role.USER:
                rendered.append(entry.text, style=PROMPT_STYLE)
            else:
                rendered.append(entry.text)
        return rendered

    @staticmethod
    def _prefix(entry: ConversationEntry) -> str:
        return USER_PREFIX if entry.role is Role.USER else ASSISTANT_PREFIX
