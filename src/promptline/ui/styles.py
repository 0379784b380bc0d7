"""CSS styles for the TUI.

Hides layout decisions from the application logic: the transcript viewport
takes all remaining height, separated from the prompt line by a one-line gap.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

/* ============================================
   Transcript Viewport
   ============================================ */
#viewport {
    height: 1fr;
    padding: 0 1;
    background: $background;
    scrollbar-gutter: stable;
    scrollbar-size-vertical: 1;
}

#viewport > #transcript {
    width: 100%;
    height: auto;
}

/* ============================================
   Prompt Line
   ============================================ */
#prompt {
    height: 3;
    margin-top: 1;
    border: none;
    border-left: outer $primary;
    background: $surface;
    padding: 0 1;

    &:focus {
        border: none;
        border-left: outer $accent;
    }
}
"""
