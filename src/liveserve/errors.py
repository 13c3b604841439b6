"""Exceptions raised by liveserve components."""


class LiveServerError(Exception):
    """Base class for liveserve errors."""


class ConfigurationError(LiveServerError):
    """Setup request was missing fields or pointed at an unusable directory."""


class WatchSetupError(LiveServerError):
    """The filesystem watcher could not be started."""


class RenderError(LiveServerError):
    """The entry file could not be read."""


class NotConfiguredError(RenderError):
    """A page was requested before any directory was configured."""


class PortUnavailableError(LiveServerError):
    """None of the candidate ports could be bound."""

    def __init__(self, candidates):
        self.candidates = list(candidates)
        ports = ", ".join(str(p) for p in self.candidates) or "none given"
        super().__init__(f"No port available (tried: {ports})")


class ChannelDeliveryError(LiveServerError):
    """Sending to a single live-reload channel failed."""
