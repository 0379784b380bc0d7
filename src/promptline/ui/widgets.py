"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- How the transcript is laid out and scrolled
- Which keys the prompt line reacts to
"""

from rich.console import RenderableType
from textual.containers import VerticalScroll
from textual.events import Key, Paste, Resize
from textual.widgets import Input, Static


class ChatViewport(VerticalScroll):
    """Scrollable view of the rendered transcript.

    Content is always replaced wholesale; there is no incremental diffing.
    Any change of size (its own or the content's) scrolls back to the
    bottom. Half-page scrolling is bound to ctrl+u / ctrl+d.
    """

    BINDINGS = [
        ("ctrl+u", "half_page_up", "Up"),
        ("ctrl+d", "half_page_down", "Down"),
    ]

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._body = Static("", id="transcript")

    def compose(self):
        yield self._body

    def set_content(self, content: RenderableType) -> None:
        """Replace the viewport content."""
        self._body.update(content)

    def goto_bottom(self) -> None:
        self.scroll_end(animate=False)

    def on_resize(self, event: Resize) -> None:
        # Posted after layout, so max_scroll_y already reflects the new size
        self.goto_bottom()

    def action_half_page_up(self) -> None:
        self.scroll_relative(y=-(self.size.height // 2), animate=False)

    def action_half_page_down(self) -> None:
        self.scroll_relative(y=self.size.height // 2, animate=False)


class PromptInput(Input):
    """Single-line prompt input.

    Up/Down are swallowed so they neither move focus nor scroll the
    transcript. Multi-line pastes are flattened (newlines become spaces).
    """

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("placeholder", "prompt..")
        super().__init__(*args, **kwargs)

    def _on_paste(self, event: Paste) -> None:
        if event.text:
            self.insert_text_at_cursor(" ".join(event.text.split()))
            event.prevent_default()
            event.stop()

    def _on_key(self, event: Key) -> None:
        if event.key in ("up", "down"):
            event.prevent_default()
            event.stop()
