"""Entry page rendering with overlay injection."""
import logging
import re
from typing import Callable, Dict, List, Optional

from .errors import NotConfiguredError, RenderError
from .session import ConsoleOverlay, SessionSettings

logger = logging.getLogger(__name__)

BODY_CLOSE = re.compile(r"</body>", re.IGNORECASE)

LIVE_RELOAD_SCRIPT = """
<script>
  (function() {
    const ws = new WebSocket('ws://' + window.location.host);
    ws.onmessage = (event) => { if (event.data === 'reload') window.location.reload(); };
  })();
</script>"""

ERUDA_SCRIPT = """
<script src="/eruda.min.js"></script>
<script>
    if (typeof eruda !== 'undefined') eruda.init();
</script>
"""

SUGER_SCRIPT = '<script src="/dt/suger-dev.js"></script>'

INSPECTOR_SCRIPT = '<script src="/inspector.js"></script>'

ZOOM_SCRIPT = """
<script src="/zoom-handler.js"></script>
<script>try { new ZoomHandler(document.body); } catch (e) {}</script>"""


def _no_console() -> str:
    return ""


def _eruda_console() -> str:
    return ERUDA_SCRIPT + "\n" + INSPECTOR_SCRIPT


def _suger_console() -> str:
    return SUGER_SCRIPT + "\n" + INSPECTOR_SCRIPT


CONSOLE_RENDERERS: Dict[ConsoleOverlay, Callable[[], str]] = {
    ConsoleOverlay.NONE: _no_console,
    ConsoleOverlay.ERUDA: _eruda_console,
    ConsoleOverlay.SUGER: _suger_console,
}


def overlay_snippets(settings: SessionSettings) -> List[str]:
    """Scripts to inject for these settings, in page order."""
    snippets = [LIVE_RELOAD_SCRIPT]
    console = CONSOLE_RENDERERS[settings.console_overlay]()
    if console:
        snippets.append(console)
    if settings.zoom_enabled:
        snippets.append(ZOOM_SCRIPT)
    return snippets


def inject_overlays(html: str, settings: SessionSettings) -> str:
    """Insert overlay scripts right before the first closing body tag.

    Pages without a closing body tag are returned unchanged.
    """
    match = BODY_CLOSE.search(html)
    if match is None:
        logger.debug("No closing body tag, skipping injection")
        return html
    injected = "".join(overlay_snippets(settings))
    return html[:match.start()] + injected + html[match.start():]


class PageRenderer:
    """Reads the configured entry file fresh on every render."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def render(self, settings: Optional[SessionSettings]) -> str:
        """Return the entry page with overlays injected.

        Raises:
            NotConfiguredError: no settings yet
            RenderError: entry file missing or unreadable
        """
        if settings is None:
            raise NotConfiguredError("Not configured.")

        path = settings.entry_path
        try:
            content = path.read_text(encoding=self.encoding, errors="replace")
        except OSError as e:
            logger.error(f"Error reading {path}: {e}")
            raise RenderError("Error reading file") from e

        return inject_overlays(content, settings)
