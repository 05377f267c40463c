"""SmashQueue: shared court queue, match lifecycle and player stats."""

__version__ = "1.0.0"
